"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract for every write-side service.
    Services use ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back.  The caller (an HTTP
      route, a script or a test, usually through session_scope()) owns
      commit/rollback, which is what makes "insert order, insert lines,
      adjust stock" one atomic unit.

Failure modes:
    - A subclass that commits breaks the all-or-nothing guarantee of
      checkout and refund.
"""

from abc import ABC

from sqlalchemy.orm import Session

from pos_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for write-side services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read views -- those belong in
          ``pos_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
