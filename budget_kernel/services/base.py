"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session-handling contract for every write-side
    service.  Services use ``session.flush()``, never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.  The trigger layer
    (``budget_services.cycle_orchestrator``) owns commit and rollback.

Failure modes:
    - ``storage_guard`` turns lost-connection errors from the driver into
      StorageFailureError so the caller aborts the whole pass.
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from budget_kernel.db.base import Base
from budget_kernel.exceptions import StorageFailureError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the outer transaction; savepoints it
          opens itself are the only exception.
    """

    def __init__(self, session: Session):
        self.session = session


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Translate driver connectivity errors into StorageFailureError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StorageFailureError(operation, str(exc.orig or exc)) from exc
