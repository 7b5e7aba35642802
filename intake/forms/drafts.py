"""Scratch storage for unsubmitted wizard answers."""
from __future__ import annotations

import json
import logging
import re
import threading
from copy import deepcopy
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

LOGGER = logging.getLogger(__name__)

DEFAULT_DRAFT_RETENTION = timedelta(days=30)
"""How long an abandoned draft survives before it loads as absent."""

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftStore(Protocol):
    """Key-value scratch store for in-progress flows."""

    def load(self, key: str) -> dict[str, Any] | None:
        ...

    def save(self, key: str, draft: dict[str, Any]) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


def _is_well_formed(draft: Any) -> bool:
    return (
        isinstance(draft, dict)
        and isinstance(draft.get("answers"), dict)
        and isinstance(draft.get("currentStep"), int)
        and not isinstance(draft.get("currentStep"), bool)
    )


def _saved_at(draft: dict[str, Any]) -> datetime | None:
    raw = draft.get("savedAt")
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class _RetentionMixin:
    retention: timedelta | None
    clock: Clock

    def _stamp(self, draft: dict[str, Any]) -> dict[str, Any]:
        stamped = deepcopy(draft)
        stamped["savedAt"] = self.clock().isoformat()
        return stamped

    def _expired(self, draft: dict[str, Any]) -> bool:
        if self.retention is None:
            return False
        saved_at = _saved_at(draft)
        if saved_at is None:
            return False
        return self.clock() - saved_at > self.retention


class MemoryDraftStore(_RetentionMixin):
    """Drafts held in a dictionary for the lifetime of the process."""

    def __init__(
        self, *, retention: timedelta | None = DEFAULT_DRAFT_RETENTION, clock: Clock = _utcnow
    ) -> None:
        self.retention = retention
        self.clock = clock
        self._drafts: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            draft = self._drafts.get(key)
            if draft is None:
                return None
            if not _is_well_formed(draft):
                LOGGER.warning("Discarding malformed draft %s", key)
                return None
            if self._expired(draft):
                LOGGER.info("Draft %s exceeded retention; discarding", key)
                del self._drafts[key]
                return None
            return deepcopy(draft)

    def save(self, key: str, draft: dict[str, Any]) -> None:
        with self._lock:
            self._drafts[key] = self._stamp(draft)

    def clear(self, key: str) -> None:
        with self._lock:
            self._drafts.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._drafts


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileDraftStore(_RetentionMixin):
    """One JSON document per flow key inside ``directory``."""

    def __init__(
        self,
        directory: str | Path,
        *,
        retention: timedelta | None = DEFAULT_DRAFT_RETENTION,
        clock: Clock = _utcnow,
    ) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.retention = retention
        self.clock = clock

    def path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Draft key must not be empty.")
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def load(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            draft = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            LOGGER.warning("Draft %s is not valid JSON; starting fresh", key)
            return None

        if not _is_well_formed(draft):
            LOGGER.warning("Draft %s has an unexpected shape; starting fresh", key)
            return None

        if self._expired(draft):
            LOGGER.info("Draft %s exceeded retention; discarding", key)
            path.unlink(missing_ok=True)
            return None
        return draft

    def save(self, key: str, draft: dict[str, Any]) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(self._stamp(draft)), encoding="utf-8")
        tmp_path.replace(path)

    def clear(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
