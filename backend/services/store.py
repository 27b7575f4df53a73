"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Scoped Collection Store                                       ║
║                                                                              ║
║  Seul accès aux collections clients / debts / transfers / daily_loads        ║
║                                                                              ║
║  RÈGLES:                                                                     ║
║  - Chaque lecture/écriture est filtrée par le Scope (groupId ou userId)      ║
║  - Chaque document créé porte userId (+ groupId)                             ║
║  - Erreurs réseau: retry 1s, 2s, 4s... puis StoreUnavailableError            ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import asyncio
import logging
import uuid
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple

from pymongo import UpdateOne
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ExecutionTimeout

from config import STORE_MAX_RETRIES, STORE_RETRY_BASE_DELAY
from models.scope import Scope

logger = logging.getLogger("store")

RETRYABLE_ERRORS = (ConnectionFailure, ExecutionTimeout)


class StoreUnavailableError(Exception):
    """Levée quand une opération échoue encore après tous les essais"""
    pass


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    max_retries: int = STORE_MAX_RETRIES,
    base_delay: float = STORE_RETRY_BASE_DELAY,
    label: str = "store",
):
    """
    Exécute une opération avec backoff exponentiel.

    Attente entre tentatives: base_delay * 2^(attempt-1).
    Seules les erreurs de connexion/timeout sont rejouées.
    """
    max_retries = max(1, max_retries)
    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except RETRYABLE_ERRORS as e:
            if attempt == max_retries:
                logger.error(f"[STORE] {label} failed after {attempt} attempts: {e}")
                raise StoreUnavailableError(f"{label}: {e}") from e
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                f"[STORE] {label} attempt {attempt}/{max_retries} failed ({e}), "
                f"retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)


class ScopedStore:
    """Vue des collections restreinte à un Scope"""

    def __init__(self, database, scope: Scope,
                 max_retries: int = STORE_MAX_RETRIES,
                 base_delay: float = STORE_RETRY_BASE_DELAY):
        self.db = database
        self.scope = scope
        self.max_retries = max_retries
        self.base_delay = base_delay

    def _query(self, extra: Optional[dict] = None) -> dict:
        query = dict(extra or {})
        query.update(self.scope.as_filter())
        return query

    async def _run(self, label: str, operation: Callable[[], Awaitable[Any]]):
        return await with_retry(operation, self.max_retries, self.base_delay, label)

    # ==================== READS ====================

    async def snapshot(self, collection: str, query: Optional[dict] = None) -> List[dict]:
        """Ensemble complet des documents du scope"""
        return await self._run(
            f"snapshot {collection}",
            lambda: self.db[collection].find(self._query(query), {"_id": 0}).to_list(None),
        )

    def _change_pipeline(self) -> List[dict]:
        """
        Filtre du change stream sur le scope.

        Les suppressions n'ont pas de fullDocument: elles passent toutes
        (une relecture de trop, jamais un changement manqué).
        """
        return [{"$match": {"$or": [
            {f"fullDocument.{self.scope.field}": self.scope.value},
            {"operationType": "delete"},
        ]}}]

    async def subscribe(self, collection: str) -> AsyncIterator[List[dict]]:
        """
        Snapshot complet tout de suite, puis de nouveau après chaque
        changement du scope. Jamais de deltas.
        """
        yield await self.snapshot(collection)
        pipeline = self._change_pipeline()
        async with self.db[collection].watch(pipeline, full_document="updateLookup") as stream:
            async for _change in stream:
                yield await self.snapshot(collection)

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        return await self._run(
            f"get {collection}/{doc_id}",
            lambda: self.db[collection].find_one(self._query({"id": doc_id}), {"_id": 0}),
        )

    # ==================== WRITES ====================

    async def add(self, collection: str, fields: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """
        Insère un document marqué du scope; retourne son id.

        _id = id: si un essai a écrit sans accusé de réception, le retry
        tombe sur DuplicateKeyError et compte comme un succès (pas de doublon).
        """
        new_id = doc_id or str(uuid.uuid4())
        doc = {**fields, **self.scope.stamp(), "id": new_id, "_id": new_id}
        attempts = 0

        async def insert():
            nonlocal attempts
            attempts += 1
            try:
                await self.db[collection].insert_one(dict(doc))
            except DuplicateKeyError:
                if attempts == 1:
                    raise
                logger.info(f"[STORE] add {collection}/{new_id} already written by a previous attempt")

        await self._run(f"add {collection}", insert)
        return new_id

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Crée ou remplace entièrement un document à id choisi"""
        doc = {**fields, **self.scope.stamp(), "id": doc_id}
        await self._run(
            f"set {collection}/{doc_id}",
            lambda: self.db[collection].replace_one(self._query({"id": doc_id}), doc, upsert=True),
        )

    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        """$set partiel; les clés pointées visent les maps imbriquées (listOrders.Lunes)"""
        await self._run(
            f"update {collection}/{doc_id}",
            lambda: self.db[collection].update_one(self._query({"id": doc_id}), {"$set": partial}),
        )

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._run(
            f"delete {collection}/{doc_id}",
            lambda: self.db[collection].delete_one(self._query({"id": doc_id})),
        )

    async def batch_update(self, collection: str, updates: List[Tuple[str, Dict[str, Any]]]) -> None:
        """Plusieurs mises à jour partielles en un seul bulk_write"""
        if not updates:
            return
        requests = [
            UpdateOne(self._query({"id": doc_id}), {"$set": partial})
            for doc_id, partial in updates
        ]
        await self._run(
            f"batch_update {collection} ({len(requests)})",
            lambda: self.db[collection].bulk_write(requests),
        )

    async def batch_delete(self, collection: str, doc_ids: List[str]) -> None:
        if not doc_ids:
            return
        await self._run(
            f"batch_delete {collection} ({len(doc_ids)})",
            lambda: self.db[collection].delete_many(self._query({"id": {"$in": list(doc_ids)}})),
        )
