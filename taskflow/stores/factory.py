from taskflow.config import Settings
from taskflow.stores.base import Store
from taskflow.stores.blob import BlobStore, FileBlobClient
from taskflow.stores.memory import MemoryStore
from taskflow.stores.sql import SqlStore


def create_store(settings: Settings) -> Store:
    mode = settings.STORAGE_MODE.lower()
    if mode == "sqlite":
        return SqlStore(settings.DATABASE_URL)
    if mode == "memory":
        return MemoryStore()
    if mode == "blob":
        return BlobStore(FileBlobClient(settings.BLOB_DIR))
    raise ValueError(f"Unknown STORAGE_MODE '{settings.STORAGE_MODE}' (expected sqlite, memory or blob)")
