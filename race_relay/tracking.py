# race_relay/tracking.py
"""
Persistent record of races that were already submitted to the form.

State lives in a JSON file (``state.json`` by default)::

    {"trackedRaceIds": {"Series/Event": ["id1", "id2"]}}

or, for a relay configured with a single event, a flat list::

    {"trackedRaceIds": ["id1", "id2"]}

Ids are only ever added. Saves go through a temp file and ``os.replace`` so a
crash mid-write leaves the previous file intact.
"""

import json
import os
from pathlib import Path
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Set

import structlog

from .core.exceptions import StateLoadError
from .core.exceptions import StateSaveError

STATE_FIELD = "trackedRaceIds"

# Bucket for a flat legacy list loaded while running with several events.
UNSCOPED_KEY = "*"


class TrackedSet:
    """Handle over the tracked ids of one (series, event) pair."""

    def __init__(self, key: str, ids: Set[str], unscoped: Optional[Set[str]] = None):
        self.key = key
        self._ids = ids
        self._unscoped = unscoped if unscoped is not None else set()

    def __contains__(self, race_id: str) -> bool:
        return race_id in self._ids or race_id in self._unscoped

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, race_id: str) -> bool:
        """Marks ``race_id`` as tracked. Returns False if it already was."""
        if race_id in self:
            return False
        self._ids.add(race_id)
        return True


class TrackingStore:
    def __init__(self, path: str, single_event_key: Optional[str] = None):
        self.path = Path(path)
        self.single_event_key = single_event_key
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._tracked: Dict[str, Set[str]] = {}

    def load(self) -> Dict[str, Set[str]]:
        """
        Loads tracked ids from disk.

        A missing or unreadable file is not fatal: the store starts empty and a
        warning is logged. This is expected on first run.
        """
        try:
            self._tracked = self._read()
            self.logger.info(
                "Loaded tracked race ids",
                path=str(self.path),
                events=len(self._tracked),
                races=sum(len(ids) for ids in self._tracked.values()),
            )
        except StateLoadError as e:
            self.logger.warning("Could not load state, starting fresh", path=str(self.path), error=str(e))
            self._tracked = {}
        return self._tracked

    def _read(self) -> Dict[str, Set[str]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise StateLoadError(str(self.path), "State file does not exist") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StateLoadError(str(self.path), f"State file unreadable: {e}") from e

        if not isinstance(data, dict):
            raise StateLoadError(str(self.path), "State file is not a JSON object")

        raw = data.get(STATE_FIELD) or {}
        if isinstance(raw, list):
            key = self.single_event_key or UNSCOPED_KEY
            return {key: _as_id_set(raw, self.path)}
        if isinstance(raw, dict):
            return {str(key): _as_id_set(ids, self.path) for key, ids in raw.items()}
        raise StateLoadError(str(self.path), f"Unexpected '{STATE_FIELD}' type: {type(raw).__name__}")

    def contains(self, key: str, race_id: str) -> bool:
        if race_id in self._tracked.get(key, ()):
            return True
        return race_id in self._tracked.get(UNSCOPED_KEY, ())

    def add(self, key: str, race_id: str) -> None:
        self._tracked.setdefault(key, set()).add(race_id)

    def tracked_set(self, key: str) -> TrackedSet:
        """Returns the handle for one pair, creating its set on first use."""
        ids = self._tracked.setdefault(key, set())
        return TrackedSet(key, ids, self._tracked.get(UNSCOPED_KEY))

    def to_state(self, tracked: Optional[Dict[str, Set[str]]] = None) -> dict:
        tracked = self._tracked if tracked is None else tracked
        if self.single_event_key is not None:
            ids: Set[str] = set()
            for bucket in tracked.values():
                ids |= set(bucket)
            return {STATE_FIELD: sorted(ids)}
        return {STATE_FIELD: {key: sorted(ids) for key, ids in sorted(tracked.items())}}

    def save(self, tracked: Optional[Dict[str, Set[str]]] = None) -> None:
        """
        Writes a collection, replacing the previous file atomically.

        Without an argument the store's own collection (as returned by
        ``load``) is written, which is what the engine does after every pair.
        """
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(self.to_state(tracked), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                self.logger.warning("Could not remove temp state file", path=str(temp_path), error=str(cleanup_error))
            raise StateSaveError(str(self.path), f"Failed to save state: {e}") from e
        self.logger.debug("Saved tracked race ids", path=str(self.path))


def _as_id_set(ids: Iterable, path: Path) -> Set[str]:
    if not isinstance(ids, list):
        raise StateLoadError(str(path), "Tracked ids must be stored as a list")
    return {str(race_id) for race_id in ids}
