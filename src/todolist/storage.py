"""
Local key-value storage.

Behaves like a browser's `localStorage`: string keys, string values, synchronous calls and a size quota.
`LocalStorage` keeps everything in one JSON object file; `MemoryStorage` keeps it in a dict.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from todolist.logging_utils import logger
from todolist.retry_utils import call_with_retries

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class StorageError(Exception):
    """Reading or writing the key-value store failed"""


class CorruptStorageError(StorageError):
    """The storage file exists but does not hold a JSON object of string values"""


class QuotaExceededError(StorageError):
    def __init__(self, size: int, quota: int) -> None:
        super().__init__(f"Quota exceeded: {size} bytes needed, {quota} bytes allowed")
        self.size = size
        self.quota = quota


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _encoded_size(items: dict[str, str]) -> int:
    return len(json.dumps(items, ensure_ascii=False).encode("utf-8"))


class MemoryStorage:
    """In-process storage, gone when the process exits"""

    def __init__(self, *, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self.quota_bytes = quota_bytes
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        updated = {**self.items, key: value}
        size = _encoded_size(updated)
        if size > self.quota_bytes:
            raise QuotaExceededError(size, self.quota_bytes)
        self.items = updated

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class LocalStorage:
    def __init__(self, path: Path, *, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self.path = path
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_for_update()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read_for_update()
        if items.pop(key, None) is not None:
            self._write(items)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStorageError(f"Corrupt storage file {self.path}: {e}") from e

        if not isinstance(items, dict) or not all(isinstance(v, str) for v in items.values()):
            raise CorruptStorageError(f"Corrupt storage file {self.path}: expected an object of string values")
        return items

    def _read_for_update(self) -> dict[str, str]:
        """
        Current items, or none when the file is corrupt.

        A corrupt file is copied to `<name>.bak` before the next write replaces it.
        """
        try:
            return self._read()
        except CorruptStorageError as e:
            backup = self.path.with_name(f"{self.path.name}.bak")
            try:
                shutil.copyfile(self.path, backup)
            except OSError as copy_error:
                raise StorageError(f"Cannot back up {self.path}: {copy_error}") from copy_error
            logger.warning(f"{e}. Saved a copy to {backup} and starting from an empty store.")
            return {}

    def _write(self, items: dict[str, str]) -> None:
        payload = json.dumps(items, ensure_ascii=False)
        size = len(payload.encode("utf-8"))
        if size > self.quota_bytes:
            raise QuotaExceededError(size, self.quota_bytes)

        try:
            call_with_retries(lambda: self._replace(payload))
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

        logger.debug(f"Wrote {size} bytes to {self.path}.")

    def _replace(self, payload: str) -> None:
        """Write to a sibling temp file and swap it in; readers only ever see a complete file"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
