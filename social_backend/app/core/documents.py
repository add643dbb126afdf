from __future__ import annotations

import json
import re
import secrets
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger
from redis.exceptions import RedisError

from .errors import StoreFault


Document = dict[str, Any]

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")

T = TypeVar("T")


class MalformedIdError(ValueError):
    """The id does not have the shape of a store-assigned id."""


def new_id() -> str:
    return secrets.token_hex(12)


def is_valid_id(doc_id: str) -> bool:
    return bool(_ID_PATTERN.match(doc_id or ""))


def _store_call(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await fn(*args, **kwargs)
        except RedisError as e:
            logger.exception("Document store call {} failed", fn.__name__)
            raise StoreFault() from e

    return wrapper


class DocumentStore:
    """JSON documents kept in redis, addressed by collection and id.

    A document lives under ``{collection}:{id}``; the ids of a collection are
    tracked in the set ``{collection}:ids``. Unique lookups go through index
    keys ``{collection}:by:{field}:{value}`` holding the owning id.

    Updates replace the whole document; there is no compare-and-set, so two
    concurrent read-modify-write cycles on one document keep only the last write.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    @staticmethod
    def _key(collection: str, doc_id: str) -> str:
        return f"{collection}:{doc_id}"

    @staticmethod
    def _index_key(collection: str, field: str, value: str) -> str:
        return f"{collection}:by:{field}:{value}"

    def _check_id(self, doc_id: str) -> None:
        if not is_valid_id(doc_id):
            raise MalformedIdError(doc_id)

    @_store_call
    async def insert(self, collection: str, doc: Document, doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or new_id()
        self._check_id(doc_id)
        body = {**doc, "id": doc_id}
        await self.client.set(self._key(collection, doc_id), json.dumps(body))
        await self.client.sadd(f"{collection}:ids", doc_id)
        return doc_id

    @_store_call
    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        self._check_id(doc_id)
        raw = await self.client.get(self._key(collection, doc_id))
        if raw is None:
            return None
        return json.loads(raw)

    @_store_call
    async def find_one(self, collection: str, field: str, value: str) -> Optional[Document]:
        doc_id = await self.client.get(self._index_key(collection, field, value))
        if not doc_id:
            return None
        return await self.find_by_id(collection, doc_id)

    @_store_call
    async def claim_unique(self, collection: str, field: str, value: str, doc_id: str) -> bool:
        """Reserve ``value`` of ``field`` for ``doc_id``; False if already taken."""
        ok = await self.client.set(self._index_key(collection, field, value), doc_id, nx=True)
        return bool(ok)

    @_store_call
    async def release_unique(self, collection: str, field: str, value: str) -> None:
        await self.client.delete(self._index_key(collection, field, value))

    @_store_call
    async def find_all(self, collection: str) -> list[Document]:
        ids = sorted(await self.client.smembers(f"{collection}:ids"))
        if not ids:
            return []
        raws = await self.client.mget(*[self._key(collection, i) for i in ids])
        return [json.loads(raw) for raw in raws if raw is not None]

    @_store_call
    async def update(self, collection: str, doc_id: str, doc: Document) -> bool:
        self._check_id(doc_id)
        body = {**doc, "id": doc_id}
        ok = await self.client.set(self._key(collection, doc_id), json.dumps(body), xx=True)
        return bool(ok)

    @_store_call
    async def delete(self, collection: str, doc_id: str) -> bool:
        self._check_id(doc_id)
        removed = await self.client.delete(self._key(collection, doc_id))
        await self.client.srem(f"{collection}:ids", doc_id)
        return bool(removed)
