import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

logger = logging.getLogger("interview_coach.db.store")


class JsonKeyValueStore:
    """Whole-file JSON key-value store. ``path=None`` keeps everything in memory."""

    def __init__(self, path: Path | None = None):
        self._path = Path(path) if path else None
        self._lock = Lock()
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            self._data = {}
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("store unreadable, starting empty | path=%s err=%s", self._path, exc)
            payload = {}
        self._data = {str(k): v for k, v in payload.items()} if isinstance(payload, dict) else {}

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(self._path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._data.get(str(key))
        if value is None:
            return default
        # callers mutate what they read; hand back a detached copy
        return json.loads(json.dumps(value))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[str(key)] = json.loads(json.dumps(value, default=str))
            self._persist()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(str(key), None) is not None:
                self._persist()

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data.keys())
