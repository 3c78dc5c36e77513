"""Key-value persistence standing in for the browser's localStorage.

Values are JSON documents. The default backend is a single JSON file;
`redis://` URLs select Redis so several client processes can share state.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import redis

from gemlisting import config

logger = logging.getLogger(__name__)


class LocalStorage:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(LocalStorage):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._items: Dict[str, str] = {k: json.dumps(v) for k, v in (initial or {}).items()}

    def get(self, key: str) -> Optional[Any]:
        raw = self._items.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._items[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage(LocalStorage):
    def __init__(self, path):
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", delete=False, dir=str(self.path.parent), encoding="utf-8") as tf:
            tf.write(json.dumps(data, indent=2))
            tmpname = tf.name
        Path(tmpname).replace(self.path)

    def get(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class RedisStorage(LocalStorage):
    def __init__(self, url: str, namespace: str = "gemlisting"):
        self.url = url
        self.namespace = namespace
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=0.5,
                socket_timeout=0.5,
            )
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self._get_client().get(self._key(key))
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._get_client().set(self._key(key), json.dumps(value))

    def remove(self, key: str) -> None:
        self._get_client().delete(self._key(key))


def storage_from_url(url: Optional[str] = None) -> LocalStorage:
    url = url or config.STORAGE_URL
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisStorage(url)
    if url == ":memory:":
        return MemoryStorage()
    return FileStorage(os.path.expanduser(url))
