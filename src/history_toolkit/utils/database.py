"""
Helpers shared by the storage backends.

'resolve_then_fetch' is the two-step join both backends use to list the attachments of a
message: first resolve the linked ids from the association records, then batch-fetch the
entities. Keeping the shape identical means the relational and key-value backends return
the same result even though one issues two SQL queries and the other walks Redis sets.
"""

import uuid
from collections.abc import Awaitable, Callable, Hashable, Sequence
from typing import TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


def generate_uid() -> str:
    return str(uuid.uuid4())


async def resolve_then_fetch(
    resolve: Callable[[], Awaitable[Sequence[K]]],
    fetch: Callable[[list[K]], Awaitable[list[T]]],
) -> list[T]:
    """Resolve a list of ids, drop duplicates (keeping first-seen order) and batch-fetch them.

    'fetch' is not called when nothing was resolved.
    """
    ids = list(dict.fromkeys(await resolve()))
    if not ids:
        return []
    return await fetch(ids)


def check_page(offset: int, limit: int) -> bool:
    """Validate pagination arguments; return False when the page is empty by construction."""
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    return limit > 0
