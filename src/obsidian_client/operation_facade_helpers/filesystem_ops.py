"""Untracked filesystem calls scoped to one managed process."""

from __future__ import annotations

import logging
import posixpath
from typing import Iterable, List, Sequence

import orjson

from ..data_models.filesystem import FilesystemData, FilesystemEntry
from ..remote_api import routes

logger = logging.getLogger(__name__)


def join_remote_path(directory: str, name: str) -> str:
    if not directory:
        return name
    return posixpath.join(directory, name)


def encode_items(paths: Iterable[str]) -> str:
    return orjson.dumps(list(paths)).decode("utf-8")


class FilesystemOperations:
    """Plain request/response filesystem calls."""

    def __init__(self, api) -> None:
        self._api = api

    async def list_entries(self, process_id: str, path: str = "") -> FilesystemData:
        payload = await self._api.get_json(routes.filesystem(process_id, "files"), {"path": path})
        return FilesystemData.from_payload(payload or {})

    async def copy_entries(self, process_id: str, sources: Sequence[str], destination: str) -> None:
        await self._api.post_json(routes.filesystem(process_id, "copy"), {"entries": list(sources), "path": destination})

    async def move_entries(self, process_id: str, sources: Sequence[str], destination: str) -> None:
        await self._api.post_json(routes.filesystem(process_id, "move"), {"entries": list(sources), "path": destination})

    async def rename_entry(self, process_id: str, source: str, destination: str) -> None:
        await self._api.post_json(routes.filesystem(process_id, "rename"), {"source": source, "destination": destination})

    async def delete_entries(self, process_id: str, paths: Sequence[str]) -> None:
        if isinstance(paths, str):
            paths = [paths]
        await self._api.delete_json(routes.filesystem(process_id), {"paths": list(paths)})
        logger.debug("Deleted %d entries on %s", len(paths), process_id)

    async def create_entry(self, process_id: str, filename: str, cwd: str, is_directory: bool) -> None:
        await self._api.post_json(
            routes.filesystem(process_id, "new"),
            {"path": join_remote_path(cwd, filename), "is_directory": is_directory},
        )

    async def read_file(self, process_id: str, filepath: str) -> str:
        return await self._api.get_text(routes.filesystem(process_id, "contents"), {"filepath": filepath})

    async def write_file(self, process_id: str, filepath: str, content: str) -> None:
        await self._api.post_text(routes.filesystem(process_id, "contents"), content, params={"filepath": filepath})

    async def search(self, process_id: str, query: str, filename_only: bool) -> List[FilesystemEntry]:
        payload = await self._api.get_json(
            routes.filesystem(process_id, "search"), {"q": query, "filename_only": filename_only}
        )
        return [FilesystemEntry.from_search_result(result) for result in payload or []]


__all__ = ["FilesystemOperations", "encode_items", "join_remote_path"]
