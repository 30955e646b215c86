"""Server-side history of long-running actions."""

from __future__ import annotations

import logging
from typing import List, Mapping

from .data_models.action import ActionRecord
from .remote_api import routes

logger = logging.getLogger(__name__)


class ActionLog:
    """Cached view of ``/api/actions``; every mutation refreshes the list."""

    def __init__(self, api):
        self._api = api
        self._records: List[ActionRecord] = []

    @property
    def records(self) -> List[ActionRecord]:
        return list(self._records)

    def active(self) -> List[ActionRecord]:
        return [record for record in self._records if record.is_active]

    async def refresh(self) -> List[ActionRecord]:
        payload = await self._api.get_json(routes.actions())
        self._records = [ActionRecord.from_payload(item) for item in payload or [] if isinstance(item, Mapping)]
        logger.debug("Loaded %d action records", len(self._records))
        return self.records

    async def clear_completed(self) -> List[ActionRecord]:
        await self._api.delete_json(routes.completed_actions())
        logger.info("Cleared completed actions")
        return await self.refresh()

    async def delete(self, tracker_id: str) -> List[ActionRecord]:
        await self._api.delete_json(routes.action(tracker_id))
        logger.info("Deleted action %s", tracker_id)
        return await self.refresh()


__all__ = ["ActionLog"]
