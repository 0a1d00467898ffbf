# cache.py
import logging
import threading
from typing import Any, Dict, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class Redirect(Exception):
  """Navigation signal: the caller should stop and send the client to ``path``."""

  def __init__(self, path: str, cookies: Optional[Dict[str, str]] = None):
    super().__init__(path)
    self.path = path
    self.cookies = cookies or {}


def redirect(path: str, cookies: Optional[Dict[str, str]] = None) -> None:
  raise Redirect(path, cookies)


class ViewCache:
  """Rendered list views keyed by request path (with query string)."""

  def __init__(self, maxsize: int = 256, ttl: float = 300):
    self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
    self._lock = threading.Lock()

  def get(self, key: str) -> Optional[Any]:
    with self._lock:
      return self._entries.get(key)

  def set(self, key: str, value: Any) -> None:
    with self._lock:
      self._entries[key] = value

  def __len__(self) -> int:
    with self._lock:
      return len(self._entries)

  def invalidate(self, path: str) -> None:
    with self._lock:
      stale = [k for k in list(self._entries) if k == path or k.startswith(path + "?") or k.startswith(path + "/")]
      for key in stale:
        self._entries.pop(key, None)
    logger.debug("Invalidated %d cached view(s) under %s", len(stale), path)
