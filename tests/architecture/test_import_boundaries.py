"""
Package boundaries.

1. pos_kernel/** may NOT import pos_config or pos_api. The kernel never
   depends upward.

2. pos_kernel/domain/** is pure: no sqlalchemy and no ORM, service,
   selector or db modules.

3. pos_config/** may NOT import pos_api.

These tests read source code via AST and never import the modules.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'")
    return found


def test_packages_exist():
    for package in ("pos_kernel", "pos_config", "pos_api"):
        assert _python_files(package), f"no sources found under {package}"


def test_kernel_has_no_upward_dependencies():
    violations = _violations("pos_kernel", ("pos_config", "pos_api"))
    assert not violations, (
        "pos_kernel/** must not import pos_config or pos_api:\n" + "\n".join(violations)
    )


def test_domain_is_pure():
    violations = _violations(
        "pos_kernel/domain",
        (
            "sqlalchemy",
            "pos_kernel.models",
            "pos_kernel.services",
            "pos_kernel.selectors",
            "pos_kernel.db",
        ),
    )
    assert not violations, (
        "pos_kernel/domain/** must not touch persistence:\n" + "\n".join(violations)
    )


def test_config_does_not_import_api():
    violations = _violations("pos_config", ("pos_api",))
    assert not violations, "pos_config/** must not import pos_api:\n" + "\n".join(violations)
