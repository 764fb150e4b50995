"""
Estimate storage backends (Jira issue property preferred, SQL optional).

Both backends hold exactly one estimate per issue and replace it in full on
every save.  The async interface lets the service treat them alike.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session

from tasketa import config
from tasketa.data_pipeline.fetcher import JiraFetcher
from tasketa.data_pipeline.normalizer import normalize_estimate_property
from tasketa.domain.enums import EstimateStoreKind
from tasketa.domain.models import Estimate

logger = logging.getLogger(__name__)


class EstimateStore:
    backend: str = "none"

    async def get(self, issue_key: str) -> Optional[Estimate]:
        raise NotImplementedError

    async def put(self, issue_key: str, estimate: Estimate) -> None:
        raise NotImplementedError


class JiraPropertyEstimateStore(EstimateStore):
    """Keeps the estimate as a JSON issue property on the tracker itself."""

    backend = EstimateStoreKind.JIRA.value

    def __init__(self, fetcher: JiraFetcher, property_key: Optional[str] = None) -> None:
        self._fetcher = fetcher
        self.property_key = property_key or config.ESTIMATE_PROPERTY_KEY

    async def get(self, issue_key: str) -> Optional[Estimate]:
        raw = await self._fetcher.get_issue_property(issue_key, self.property_key)
        return normalize_estimate_property(raw)

    async def put(self, issue_key: str, estimate: Estimate) -> None:
        await self._fetcher.set_issue_property(issue_key, self.property_key, estimate.to_payload())


class SqlEstimateStore(EstimateStore):
    """One row per issue in the ``estimates`` table."""

    backend = EstimateStoreKind.SQL.value

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        if session_factory is None:
            from tasketa.database import get_db
            session_factory = get_db
        self._session_factory = session_factory

    async def get(self, issue_key: str) -> Optional[Estimate]:
        from tasketa.database import get_estimate_payload

        def _sync():
            db = self._session_factory()
            try:
                return get_estimate_payload(db, issue_key)
            finally:
                db.close()

        payload = await asyncio.to_thread(_sync)
        return Estimate.from_payload(payload)

    async def put(self, issue_key: str, estimate: Estimate) -> None:
        from tasketa.database import set_estimate_payload

        def _sync():
            db = self._session_factory()
            try:
                set_estimate_payload(db, issue_key, estimate.to_payload())
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        await asyncio.to_thread(_sync)


_store_singleton: Optional[EstimateStore] = None
_store_lock = threading.Lock()


def get_estimate_store(fetcher: JiraFetcher) -> EstimateStore:
    """Return the process-wide store chosen by ``config.ESTIMATE_STORE``."""
    global _store_singleton
    if _store_singleton is not None:
        return _store_singleton

    with _store_lock:
        if _store_singleton is not None:
            return _store_singleton

        kind = config.ESTIMATE_STORE
        if kind == EstimateStoreKind.SQL.value:
            _store_singleton = SqlEstimateStore()
        else:
            if kind != EstimateStoreKind.JIRA.value:
                logger.warning("Unknown ESTIMATE_STORE=%r; using the Jira property store", kind)
            _store_singleton = JiraPropertyEstimateStore(fetcher)
        logger.info("Estimate store: %s", _store_singleton.backend)
        return _store_singleton


def reset_estimate_store() -> None:
    """Forget the process-wide store so the next call rebuilds it."""
    global _store_singleton
    with _store_lock:
        _store_singleton = None
