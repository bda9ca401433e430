# athletehub/db/store.py
from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from loguru import logger
from pymongo import DeleteOne, ReplaceOne
from pymongo.errors import PyMongoError

from athletehub import settings
from athletehub.errors import NotFound, StoreUnavailable

Key = Tuple[str, str]


def _clean(doc: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k != "_id"}


class RecordStore:
    """
    Key/value view over the document database: every record is addressed by
    ``(collection, id)`` and stored as one document whose ``_id`` is the id.
    """

    def __init__(self, database, retries: int | None = None):
        self._db = database
        self.retries = settings.WRITE_RETRIES if retries is None else retries

    # --- single key ----------------------------------------------------------
    def get(self, collection: str, record_id: str) -> Optional[dict]:
        try:
            doc = self._db[collection].find_one({"_id": record_id})
        except PyMongoError as e:
            raise StoreUnavailable(f"read {collection}/{record_id} failed") from e
        return _clean(doc)

    def set(self, collection: str, record_id: str, record: Mapping[str, Any]) -> None:
        try:
            self._db[collection].replace_one({"_id": record_id}, _clean(record), upsert=True)
        except PyMongoError as e:
            raise StoreUnavailable(f"write {collection}/{record_id} failed") from e

    def update(self, collection: str, record_id: str, partial: Mapping[str, Any]) -> bool:
        """Merge ``partial`` into an existing record. Returns False when absent."""
        try:
            res = self._db[collection].update_one({"_id": record_id}, {"$set": _clean(partial)})
        except PyMongoError as e:
            raise StoreUnavailable(f"update {collection}/{record_id} failed") from e
        return res.matched_count > 0

    def delete(self, collection: str, record_id: str) -> bool:
        try:
            res = self._db[collection].delete_one({"_id": record_id})
        except PyMongoError as e:
            raise StoreUnavailable(f"delete {collection}/{record_id} failed") from e
        return res.deleted_count > 0

    def scan_all(self, collection: str, where: Optional[Mapping[str, Any]] = None) -> Iterator[Tuple[str, dict]]:
        """Yield ``(id, record)`` for every record, optionally narrowed by equality filters."""
        try:
            cursor = self._db[collection].find(dict(where or {}))
            for doc in cursor:
                yield str(doc["_id"]), _clean(doc)
        except PyMongoError as e:
            raise StoreUnavailable(f"scan {collection} failed") from e

    # --- multi key -------------------------------------------------------------
    def write_many(
        self,
        changes: Mapping[Key, Optional[Mapping[str, Any]]],
        guards: Optional[Mapping[Key, Mapping[str, Any]]] = None,
    ) -> None:
        """
        Apply every change or none of them. A ``None`` value deletes the key.

        Writes go out as one ordered bulk per collection. A failed attempt is
        retried (replace/delete are idempotent); if it still fails, the keys
        are put back to what they held before the call and StoreUnavailable
        is raised.

        ``guards`` maps keys to extra filter fields. A guarded key is only
        written if its stored record still matches the guard, and is never
        created. NotFound is raised when any guard missed.
        """
        if not changes:
            return
        guards = guards or {}

        before: Dict[Key, Optional[dict]] = {key: self.get(*key) for key in changes}

        attempts = 1 + max(self.retries, 0)
        last_error: Optional[PyMongoError] = None
        for attempt in range(1, attempts + 1):
            try:
                matched = self._apply(changes, guards)
                break
            except PyMongoError as e:
                last_error = e
                logger.warning(f"write_many attempt {attempt}/{attempts} failed for {sorted(changes)}: {e}")
        else:
            self._restore(before, guards)
            raise StoreUnavailable("Record store unavailable, no changes applied") from last_error

        if matched < len(guards):
            logger.warning(f"write_many guard missed for {sorted(guards)}: {matched}/{len(guards)} matched")
            raise NotFound("Record changed or was removed while it was being written")

    def _apply(
        self,
        changes: Mapping[Key, Optional[Mapping[str, Any]]],
        guards: Optional[Mapping[Key, Mapping[str, Any]]] = None,
    ) -> int:
        """Send the writes; returns how many guarded keys were matched."""
        guards = guards or {}
        # (collection, guarded) -> ops
        batches: Dict[Tuple[str, bool], list] = defaultdict(list)
        for key, record in changes.items():
            collection, record_id = key
            guard = guards.get(key)
            flt = {"_id": record_id, **(guard or {})}
            if record is None:
                op = DeleteOne(flt)
            else:
                op = ReplaceOne(flt, _clean(record), upsert=guard is None)
            batches[(collection, guard is not None)].append(op)

        matched = 0
        for (collection, guarded), ops in batches.items():
            res = self._db[collection].bulk_write(ops, ordered=True)
            if guarded:
                matched += res.matched_count + res.deleted_count
        return matched

    def _restore(
        self,
        before: Mapping[Key, Optional[dict]],
        guards: Optional[Mapping[Key, Mapping[str, Any]]] = None,
    ) -> None:
        # guarded keys are put back only where they still exist
        existing_only = {key: {} for key in (guards or {})}
        try:
            self._apply(before, existing_only)
            logger.info(f"compensating restore applied for {sorted(before)}")
        except PyMongoError as e:
            # nothing left to fall back on; the next read repairs orphans
            logger.error(f"compensating restore failed for {sorted(before)}: {e}")
