# schooladmin/api/db/store.py
"""
Document store over Redis.

Each collection is one Redis hash mapping the internal ``_id`` to the JSON
document, plus one hash per unique field mapping value -> ``_id``:

- <prefix>:<collection>                 _id -> JSON document
- <prefix>:<collection>:idx:<field>     value -> _id
- <prefix>:<collection>:seq             counter used to build _ids

Writes touching an index run inside a WATCH/MULTI transaction so two
concurrent inserts cannot both claim the same unique value.

Public API:
- get_redis(), DocumentStore(client, prefix)
- Collection.find(filter), find_by_id(_id), find_one(filter)
- Collection.insert(doc), delete_by_id(_id), count()
"""
from __future__ import annotations
import functools
import json
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import redis

from schooladmin.api import settings
from schooladmin.api.errors import DuplicateKey, StoreError
from schooladmin.api.models import SECTIONS, USERS
from schooladmin.api.utils.logger import write_log

_redis_client = None
_redis_lock = threading.Lock()


def get_redis():
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    if not settings.REDIS_URL:
        raise StoreError("REDIS_URL is not configured")
    with _redis_lock:
        if _redis_client is None:
            client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            try:
                # quick connection test
                client.ping()
            except redis.RedisError as e:
                write_log({"event": "store_error", "op": "connect", "error": str(e)}, stream="system")
                raise StoreError(f"cannot reach document store: {e}") from e
            _redis_client = client
    return _redis_client


def _store_call(fn: Callable) -> Callable:
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except redis.RedisError as e:
            write_log({"event": "store_error", "collection": self.name, "op": fn.__name__, "error": str(e)}, stream="system")
            raise StoreError(str(e)) from e
    return wrapper


def _matches(doc: Dict[str, Any], flt: Dict[str, Any]) -> bool:
    for field, expected in flt.items():
        actual = doc.get(field)
        if isinstance(expected, dict):
            # nested documents match on the given subset of keys
            if not isinstance(actual, dict):
                return False
            if not _matches(actual, expected):
                return False
        elif actual != expected:
            return False
    return True


class Collection:
    def __init__(self, client, prefix: str, name: str, unique: Iterable[str] = ()):
        self._client = client
        self.name = name
        self.key = f"{prefix}:{name}"
        self.seq_key = f"{self.key}:seq"
        self.unique = tuple(unique)

    def _index_key(self, field: str) -> str:
        return f"{self.key}:idx:{field}"

    def _new_id(self) -> str:
        # 24 hex chars: creation second + per-collection sequence, so ids sort by insertion
        seq = self._client.incr(self.seq_key)
        return f"{int(time.time()):08x}{seq:016x}"

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Dict[str, Any]]:
        if raw is None:
            return None
        return json.loads(raw)

    @_store_call
    def find(self, flt: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        raw = self._client.hgetall(self.key) or {}
        docs = [json.loads(v) for _, v in sorted(raw.items())]
        if not flt:
            return docs
        return [d for d in docs if _matches(d, flt)]

    @_store_call
    def find_by_id(self, _id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not _id:
            return None
        return self._decode(self._client.hget(self.key, str(_id)))

    @_store_call
    def find_one(self, flt: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        # single unique-field lookups go through the index
        if len(flt) == 1:
            field, value = next(iter(flt.items()))
            if field in self.unique and not isinstance(value, dict):
                _id = self._client.hget(self._index_key(field), str(value))
                return self._decode(self._client.hget(self.key, _id)) if _id else None
        for doc in self.find(flt):
            return doc
        return None

    @_store_call
    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        for field in self.unique:
            if doc.get(field) is None:
                raise StoreError(f"{self.name}.{field} is required")

        stored = dict(doc)
        stored["_id"] = self._new_id()
        payload = json.dumps(stored, ensure_ascii=False)
        index_keys = [self._index_key(f) for f in self.unique]

        def _insert(pipe):
            for field in self.unique:
                if pipe.hexists(self._index_key(field), str(stored[field])):
                    raise DuplicateKey(self.name, field, stored[field])
            pipe.multi()
            pipe.hset(self.key, stored["_id"], payload)
            for field in self.unique:
                pipe.hset(self._index_key(field), str(stored[field]), stored["_id"])

        self._client.transaction(_insert, *index_keys)
        return stored

    @_store_call
    def delete_by_id(self, _id: str) -> bool:
        doc = self._decode(self._client.hget(self.key, _id))
        if doc is None:
            return False
        pipe = self._client.pipeline(transaction=True)
        pipe.hdel(self.key, _id)
        for field in self.unique:
            if doc.get(field) is not None:
                pipe.hdel(self._index_key(field), str(doc[field]))
        pipe.execute()
        return True

    @_store_call
    def count(self) -> int:
        return int(self._client.hlen(self.key))


class DocumentStore:
    def __init__(self, client=None, prefix: Optional[str] = None):
        self.client = client if client is not None else get_redis()
        self.prefix = prefix or settings.STORE_PREFIX
        self.users = Collection(self.client, self.prefix, USERS, unique=("id", "email"))
        self.sections = Collection(self.client, self.prefix, SECTIONS, unique=("id",))

