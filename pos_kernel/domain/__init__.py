"""
Pure domain layer.

Dataclasses, enumerations and pure functions with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (injected via Clock)
- I/O
"""
