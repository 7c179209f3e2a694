"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service in the kernel.  Services receive a SQLAlchemy
    ``Session`` (the unit-of-work handle) and persist with
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries belong to the caller (AnnuityLifecycleService,
      NotificationDispatcher or a test).  Generation, recalculation and
      payment each run inside exactly one caller-owned transaction.

Failure modes:
    - A subclass calling ``session.commit()`` would break the
      all-or-nothing guarantee of recalculation.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from lease_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide report-style reads; those belong in
          ``lease_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: Open SQLAlchemy session owned by the caller.
        """
        self.session = session
