"""
BaseService -- abstract base for all ledger services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service.  Services receive a SQLAlchemy ``Session`` and use
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Services -- imperative shell.  May import from db/, models/, domain/
    and selectors/.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back themselves.  The caller
      (command runner, CLI, or test harness) owns commit/rollback.
"""

from abc import ABC

from sqlalchemy.orm import Session

from hostel_ledger.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for all services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
        - ``clock`` defaults to the system clock in UTC.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Source of the current date.
        """
        self.session = session
        self.clock = clock or SystemClock()
