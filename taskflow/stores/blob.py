import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from taskflow.schemas.task import Task
from taskflow.schemas.user import UserRecord
from taskflow.stores.memory import MemoryStore

logger = logging.getLogger(__name__)


class BlobClient(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class FileBlobClient:
    """Keeps each blob as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # One temp file per write; readers never see a half-written document
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.directory, prefix=f"{key}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp.write(value)
        os.replace(tmp.name, self._path(key))


class BlobStore(MemoryStore):
    """
    MemoryStore whose tables live in a blob client.

    Documents: ``users`` and ``tasks`` (JSON arrays), ``user_counter`` and
    ``task_counter`` (JSON integers). The whole state is re-read before every
    operation and written back after every mutation, so several processes
    sharing one blob client see each other's writes (last writer wins).
    """

    def __init__(self, client: BlobClient):
        super().__init__()
        self.client = client

    def _read(self) -> dict:
        return {key: self.client.get(key) for key in ("users", "tasks", "user_counter", "task_counter")}

    def _write(self, documents: dict) -> None:
        for key, value in documents.items():
            self.client.set(key, value)

    async def _load(self) -> None:
        raw = await run_in_threadpool(self._read)
        self.users = {u["id"]: UserRecord.model_validate(u) for u in json.loads(raw["users"] or "[]")}
        self.tasks = {t["id"]: Task.model_validate(t) for t in json.loads(raw["tasks"] or "[]")}
        self.user_counter = int(raw["user_counter"] or 0)
        self.task_counter = int(raw["task_counter"] or 0)

    async def _save(self) -> None:
        documents = {
            "users": json.dumps([u.model_dump(mode="json") for u in self.users.values()]),
            "tasks": json.dumps([t.model_dump(mode="json") for t in self.tasks.values()]),
            "user_counter": json.dumps(self.user_counter),
            "task_counter": json.dumps(self.task_counter),
        }
        await run_in_threadpool(self._write, documents)

    async def initialize(self) -> None:
        await super().initialize()
        async with self._lock:
            if await run_in_threadpool(self.client.get, "users") is None:
                await self._save()
