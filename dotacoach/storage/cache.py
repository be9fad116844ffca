"""Cache interfaces."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Any, Callable, Dict, List, Union
import hashlib
import json
import logging
import os
import tempfile
import threading
import time

from dotacoach.ops.metrics import MetricsRecorder, NullMetricsRecorder

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# Returned by ``get`` when a stored ``None`` must be told apart from a miss.
MISSING: Any = _Missing()


@dataclass
class CacheEntry:
    key: str
    value: Any
    created_at: float
    ttl: float
    access_count: int = 0

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheStore:
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        raise NotImplementedError

    def has(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def clear_by_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    def sweep(self) -> int:
        raise NotImplementedError

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        value = self.get(key, MISSING)
        if value is not MISSING:
            return value
        value = loader()
        self.set(key, value, ttl)
        return value


class _TTLPolicy:
    """Maps key prefixes to TTLs; the longest matching prefix wins."""

    def __init__(self, default_ttl: float, prefixes: Optional[Dict[str, float]] = None) -> None:
        self.default_ttl = float(default_ttl)
        self._prefixes: Dict[str, float] = {}
        for prefix, ttl in (prefixes or {}).items():
            self.register(prefix, ttl)

    def register(self, prefix: str, ttl: float) -> None:
        self._prefixes[prefix] = float(ttl)

    def ttl_for(self, key: str) -> float:
        best: Optional[str] = None
        for prefix in self._prefixes:
            if key.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return self.default_ttl
        return self._prefixes[best]

    def as_dict(self) -> Dict[str, float]:
        return dict(self._prefixes)


class TTLCache(CacheStore):
    """In-memory key/value store with per-entry expiry.

    Expired entries are evicted lazily on read and eagerly by ``sweep``. The
    clock is injectable so tests can move time forward deterministically.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        ttl_prefixes: Optional[Dict[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[MetricsRecorder] = None,
    ) -> None:
        self._data: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}
        self._policy = _TTLPolicy(default_ttl, ttl_prefixes)
        self._clock = clock
        self._metrics = metrics or NullMetricsRecorder()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def register_ttl(self, prefix: str, ttl: float) -> None:
        with self._lock:
            self._policy.register(prefix, ttl)

    def ttl_for(self, key: str) -> float:
        with self._lock:
            return self._policy.ttl_for(key)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self._record_miss()
                return default
            if entry.is_expired(self._clock()):
                self._data.pop(key, None)
                self._evictions += 1
                self._metrics.increment("cache.evictions")
                self._record_miss()
                return default
            entry.access_count += 1
            self._hits += 1
            self._metrics.increment("cache.hits")
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            resolved = self._policy.ttl_for(key) if ttl is None else float(ttl)
            if resolved <= 0:
                self._data.pop(key, None)
                return
            self._data[key] = CacheEntry(
                key=key,
                value=value,
                created_at=self._clock(),
                ttl=resolved,
            )
        logger.debug("Stored %s (expires in %.0fs)", key, resolved)

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._data.pop(key, None)
                self._evictions += 1
                self._metrics.increment("cache.evictions")
                return False
            return True

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        value = self.get(key, MISSING)
        if value is not MISSING:
            return value

        # Concurrent misses for one key wait on the first loader instead of
        # issuing duplicate upstream calls.
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            try:
                value = self._peek(key)
                if value is not MISSING:
                    return value
                logger.debug("Loading %s via loader", key)
                value = loader()
                self.set(key, value, ttl)
                return value
            finally:
                with self._lock:
                    if self._key_locks.get(key) is key_lock:
                        self._key_locks.pop(key, None)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            size = len(self._data)
            self._data.clear()
        logger.debug("Cleared %d cache entries", size)

    def clear_by_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._data if key.startswith(prefix)]
            for key in doomed:
                del self._data[key]
        return len(doomed)

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._data.items() if entry.is_expired(now)]
            for key in expired:
                del self._data[key]
            self._evictions += len(expired)
        if expired:
            self._metrics.increment("cache.evictions", len(expired))
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "entries": len(self._data),
                "hit_rate": round(self._hits / total * 100, 2) if total else 0.0,
            }

    def popular(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            ranked = sorted(self._data.values(), key=lambda e: e.access_count, reverse=True)
            return [{"key": e.key, "access_count": e.access_count} for e in ranked[:limit]]

    def _peek(self, key: str) -> Any:
        with self._lock:
            entry = self._data.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return MISSING
            return entry.value

    def _record_miss(self) -> None:
        self._misses += 1
        self._metrics.increment("cache.misses")


class FileCache(CacheStore):
    """Same TTL semantics as ``TTLCache``, persisted as one JSON file per key.

    Uses wall-clock time by default since entries outlive the process.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        default_ttl: float = 300,
        ttl_prefixes: Optional[Dict[str, float]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(cache_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._policy = _TTLPolicy(default_ttl, ttl_prefixes)
        self._clock = clock

    def register_ttl(self, prefix: str, ttl: float) -> None:
        self._policy.register(prefix, ttl)

    def ttl_for(self, key: str) -> float:
        return self._policy.ttl_for(key)

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path_for_key(key)
        payload = self._read(path)
        if payload is None:
            return default
        if self._clock() >= float(payload.get("expires_at", 0)):
            self._unlink(path)
            return default
        return payload.get("value")

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        resolved = self._policy.ttl_for(key) if ttl is None else float(ttl)
        path = self._path_for_key(key)
        if resolved <= 0:
            self._unlink(path)
            return
        now = self._clock()
        payload = {
            "key": key,
            "created_at": now,
            "expires_at": now + resolved,
            "value": value,
        }
        # Readers never lock, so the entry is swapped in whole: write a sibling
        # temp file and rename it over the target.
        tmp = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=self._dir, suffix=".tmp", delete=False
        )
        try:
            with tmp:
                json.dump(payload, tmp)
            os.replace(tmp.name, path)
        except (OSError, TypeError, ValueError):
            self._unlink(Path(tmp.name))
            raise

    def delete(self, key: str) -> bool:
        return self._unlink(self._path_for_key(key))

    def clear(self) -> None:
        with self._lock:
            for path in self._dir.glob("*.json"):
                self._unlink(path)

    def clear_by_prefix(self, prefix: str) -> int:
        removed = 0
        with self._lock:
            for path in self._dir.glob("*.json"):
                payload = self._read(path)
                if payload and str(payload.get("key", "")).startswith(prefix):
                    removed += int(self._unlink(path))
        return removed

    def sweep(self) -> int:
        removed = 0
        now = self._clock()
        with self._lock:
            for path in self._dir.glob("*.json"):
                payload = self._read(path)
                if payload is None:
                    continue
                if now >= float(payload.get("expires_at", 0)):
                    removed += int(self._unlink(path))
        return removed

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            # Left in place; the next ``set`` for the key replaces it.
            logger.warning("Ignoring unreadable cache file %s: %s", path.name, exc)
            return None

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    def _path_for_key(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._dir / f"{digest}.json"


class CacheSweeper:
    """Background thread that calls ``cache.sweep()`` on a fixed interval."""

    def __init__(self, cache: CacheStore, interval: float = 60.0) -> None:
        self._cache = cache
        self._interval = max(0.01, float(interval))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="cache-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._cache.sweep()
            except Exception:
                logger.exception("Cache sweep failed")
