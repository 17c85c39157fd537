"""
Shared plumbing for the key-value repositories.

Every record is stored as the pydantic JSON dump of its model. '_errors' translates redis
failures into 'BackendError'; '_decode' turns malformed payloads into 'SerializationError'.
None of the multi-key sequences built on top of this are transactional: a failure stops
the sequence and leaves whatever was already written.
"""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from history_toolkit.errors import BackendError, HistoryStoreError, NotFoundError, SerializationError
from history_toolkit.utils.logging import StoreLogger

ModelT = TypeVar("ModelT", bound=BaseModel)


class RedisRepository:
    def __init__(self, client: Redis, logger: StoreLogger) -> None:
        self.client = client
        self.logger = logger

    @contextmanager
    def _errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except HistoryStoreError:
            raise
        except RedisError as exc:
            self.logger.error(f"{action} failed: {exc}")
            raise BackendError(f"{action} failed: {exc}") from exc

    def _encode(self, model: BaseModel) -> str:
        return model.model_dump_json()

    def _decode(self, model_type: type[ModelT], payload: str) -> ModelT:
        try:
            return model_type.model_validate_json(payload)
        except ValidationError as exc:
            self.logger.error(f"Cannot decode {model_type.__name__}: {exc}")
            raise SerializationError(f"Cannot decode {model_type.__name__}: {exc}") from exc

    def _not_found(self, entity: str, key: str | int) -> NotFoundError:
        self.logger.error(f"{entity} {key} not found")
        return NotFoundError(entity, key)

    async def _load(self, model_type: type[ModelT], key: str, entity: str, entity_id: str | int) -> ModelT:
        payload = await self.client.get(key)
        if payload is None:
            raise self._not_found(entity, entity_id)
        return self._decode(model_type, payload)

    async def _load_many(self, model_type: type[ModelT], keys: Sequence[str]) -> list[ModelT]:
        """Batch-read 'keys' preserving their order; keys without a record are skipped."""
        if not keys:
            return []
        payloads = await self.client.mget(keys)
        return [self._decode(model_type, payload) for payload in payloads if payload is not None]
