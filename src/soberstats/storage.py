from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Key-value string store backed by one JSON file.

    Each key maps to a raw string (itself usually JSON), the same shape a
    browser's localStorage has. Every get/set reads or rewrites the whole
    file, so a single key is always replaced atomically.

    A missing or blank file reads as an empty store. An unparseable one is
    copied aside to `<name>.corrupt-<unix>.json` and reset, so the next
    write starts clean instead of failing.
    """

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)

    def read_all(self) -> dict[str, str]:
        path = self.data_path
        if not path.exists():
            return {}
        txt = path.read_text(encoding="utf-8").strip()
        if not txt:
            return {}
        try:
            data = json.loads(txt)
        except json.JSONDecodeError:
            self._quarantine(txt)
            return {}
        if not isinstance(data, dict):
            logger.warning("Data file %s does not hold an object; ignoring it", path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def write_all(self, entries: dict[str, str]) -> None:
        """tmp file + fsync + os.replace; chmod 0600 where the OS allows it."""
        path = self.data_path
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        try:
            os.chmod(path, 0o600)
        except OSError:
            pass

    def _quarantine(self, txt: str) -> None:
        backup = self.data_path.with_suffix(f".corrupt-{int(time.time())}.json")
        logger.warning("Data file %s is not valid JSON; backed up to %s", self.data_path, backup)
        backup.write_text(txt, encoding="utf-8")
        self.write_all({})

    def get(self, key: str) -> str | None:
        return self.read_all().get(key)

    def set(self, key: str, value: str) -> None:
        entries = self.read_all()
        entries[key] = value
        self.write_all(entries)

    def delete(self, key: str) -> None:
        entries = self.read_all()
        if entries.pop(key, None) is not None:
            self.write_all(entries)

    def keys(self) -> list[str]:
        return sorted(self.read_all())


class MemoryStore:
    """In-process store with the JsonFileStore interface."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
