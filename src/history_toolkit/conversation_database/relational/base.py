"""
Shared plumbing for the relational repositories.

Each repository owns an 'async_sessionmaker' and the logger injected by the provider.
'_errors' translates SQLAlchemy failures into the store's error taxonomy at the boundary so
the concrete repositories only deal with the happy path and with 'NotFoundError'.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from history_toolkit.errors import BackendError, ConflictError, HistoryStoreError, NotFoundError
from history_toolkit.utils.logging import StoreLogger


class SQLRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], logger: StoreLogger) -> None:
        self.session_factory = session_factory
        self.logger = logger

    @contextmanager
    def _errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except HistoryStoreError:
            raise
        except IntegrityError as exc:
            self.logger.error(f"{action} failed: {exc.orig}")
            raise ConflictError(f"{action} failed: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self.logger.error(f"{action} failed: {exc}")
            raise BackendError(f"{action} failed: {exc}") from exc

    def _not_found(self, entity: str, key: str | int) -> NotFoundError:
        self.logger.error(f"{entity} {key} not found")
        return NotFoundError(entity, key)
