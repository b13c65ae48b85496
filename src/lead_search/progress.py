"""Progress stores keyed by run id.

Every ``set`` replaces the whole record (last writer wins). Stop requests are
kept under a separate key so a progress overwrite from the running search
cannot erase them.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

from .config import SearchConfig
from .errors import ConfigError
from .models import STATUS_RUNNING, STATUS_STOPPED, ProgressRecord

STOP_MESSAGE = "Search stopped by user"
_SAFE_RUN_ID = re.compile(r"^[A-Za-z0-9_.\-]+$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _stamped(record: ProgressRecord) -> ProgressRecord:
    return replace(record, updated_at=_now())


def _stopped(record: ProgressRecord) -> ProgressRecord:
    return replace(record, status=STATUS_STOPPED, message=STOP_MESSAGE, updated_at=_now())


class InMemoryProgressStore:
    """Process-local store; suitable for a CLI run or tests."""

    def __init__(self) -> None:
        self._records: dict[str, ProgressRecord] = {}
        self._stops: set[str] = set()
        self._lock = Lock()

    def get(self, run_id: str) -> ProgressRecord | None:
        with self._lock:
            return self._records.get(run_id)

    def set(self, record: ProgressRecord) -> None:
        with self._lock:
            self._records[record.run_id] = _stamped(record)

    def exists(self, run_id: str) -> bool:
        with self._lock:
            return run_id in self._records

    def request_stop(self, run_id: str) -> bool:
        with self._lock:
            record = self._records.get(run_id)
            if record is None or record.status != STATUS_RUNNING:
                return False
            self._stops.add(run_id)
            self._records[run_id] = _stopped(record)
            return True

    def stop_requested(self, run_id: str) -> bool:
        with self._lock:
            return run_id in self._stops


class JsonFileProgressStore:
    """One JSON document per run in a directory, readable by other processes."""

    def __init__(self, directory: str | os.PathLike[str], *, logger: logging.Logger) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._logger = logger

    def _path(self, run_id: str, suffix: str = ".json") -> Path:
        if not _SAFE_RUN_ID.match(run_id):
            raise ValueError(f"Invalid run id: {run_id!r}")
        return self._directory / f"{run_id}{suffix}"

    def _write_atomic(self, path: Path, text: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=path.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                file_obj.write(text)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, run_id: str) -> ProgressRecord | None:
        path = self._path(run_id)
        try:
            text = path.read_text(encoding="utf-8")
            return ProgressRecord.from_dict(json.loads(text))
        except FileNotFoundError:
            return None
        except (ValueError, KeyError) as exc:
            self._logger.debug("Unreadable progress record for %s: %s", run_id, exc)
            return None

    def set(self, record: ProgressRecord) -> None:
        payload = _stamped(record).to_dict()
        self._write_atomic(self._path(record.run_id), json.dumps(payload, ensure_ascii=False))

    def exists(self, run_id: str) -> bool:
        return self._path(run_id).exists()

    def request_stop(self, run_id: str) -> bool:
        record = self.get(run_id)
        if record is None or record.status != STATUS_RUNNING:
            return False
        self._write_atomic(self._path(run_id, ".stop"), _now())
        self.set(_stopped(record))
        return True

    def stop_requested(self, run_id: str) -> bool:
        return self._path(run_id, ".stop").exists()


class RedisProgressStore:
    """Redis-backed store; records expire after the retention window."""

    def __init__(self, client: Any, *, ttl: int, prefix: str = "lead_search:run") -> None:
        self._client = client
        self._ttl = ttl
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, ttl: int) -> RedisProgressStore:
        try:
            import redis
        except ImportError as exc:
            raise ConfigError(
                "Redis progress backend requires redis. Use pip install .[redis]."
            ) from exc
        return cls(redis.from_url(url, decode_responses=True), ttl=ttl)

    def _key(self, run_id: str) -> str:
        return f"{self._prefix}:{run_id}"

    def get(self, run_id: str) -> ProgressRecord | None:
        data = self._client.get(self._key(run_id))
        if not data:
            return None
        try:
            return ProgressRecord.from_dict(json.loads(data))
        except (ValueError, KeyError):
            return None

    def set(self, record: ProgressRecord) -> None:
        payload = json.dumps(_stamped(record).to_dict(), ensure_ascii=False)
        self._client.setex(self._key(record.run_id), self._ttl, payload)

    def exists(self, run_id: str) -> bool:
        return bool(self._client.exists(self._key(run_id)))

    def request_stop(self, run_id: str) -> bool:
        record = self.get(run_id)
        if record is None or record.status != STATUS_RUNNING:
            return False
        self._client.setex(self._key(run_id) + ":stop", self._ttl, "1")
        self.set(_stopped(record))
        return True

    def stop_requested(self, run_id: str) -> bool:
        return bool(self._client.exists(self._key(run_id) + ":stop"))


def build_progress_store(config: SearchConfig, *, logger: logging.Logger):
    """Create the progress store selected by ``config.progress_backend``."""
    if config.progress_backend == "memory":
        return InMemoryProgressStore()
    if config.progress_backend == "redis":
        if not config.redis_url:
            raise ConfigError("Redis progress backend requires REDIS_URL.")
        return RedisProgressStore.from_url(config.redis_url, ttl=config.progress_ttl)
    return JsonFileProgressStore(config.progress_dir, logger=logger)
