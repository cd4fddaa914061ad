from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping

from esper import World

from gridzen.components.progress_tracker import PackProgress, PlayerProfile, ProgressTracker
from gridzen.components.puzzle import PuzzleRef
from gridzen.components.result_record import ResultRecord
from gridzen.components.tile import PuzzleMode
from gridzen.constants import (
    LEADERBOARD_LIMIT,
    STORAGE_KEY_HIGHSCORES,
    STORAGE_KEY_PROFILE,
    STORAGE_KEY_PUZZLE_PROGRESS,
)
from gridzen.events.bus import (
    EVENT_HIGHSCORES_RESET,
    EVENT_RESULT_RECORDED,
    EVENT_ROUND_STARTED,
    EVENT_ROUND_WON,
    EVENT_SETTINGS_CHANGED,
    EVENT_UNLOCKS_CHANGED,
    EventBus,
)
from gridzen.factories.puzzles import PACK_ORDER, get_pack
from gridzen.storage import KeyValueStorage, LocalFileStorage

logger = logging.getLogger(__name__)

Highscores = Dict[str, List[ResultRecord]]


def bucket_key_for_size(mode: PuzzleMode, size: int) -> str:
    if mode == PuzzleMode.CLASSIC:
        return f"{size}x{size}"
    return f"{mode.value}-{size}x{size}"


def bucket_key_for_puzzle(pack: str, index: int) -> str:
    return f"puzzle-{pack}-{index}"


def serialize_highscores(highscores: Mapping[str, List[ResultRecord]]) -> Dict[str, List[Dict[str, Any]]]:
    return {key: [record.to_payload() for record in records] for key, records in highscores.items()}


def deserialize_highscores(payload: Mapping[str, Any]) -> Highscores:
    """Rebuild leaderboards from stored JSON, skipping malformed entries.

    Each bucket comes back ascending by moves and cut to the leaderboard limit,
    whatever order or length was stored.
    """
    highscores: Highscores = {}
    for key, entries in payload.items():
        if not isinstance(entries, list):
            continue
        records: List[ResultRecord] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                logger.warning("Dropping malformed result in bucket '%s': %r", key, entry)
                continue
            try:
                records.append(ResultRecord.from_payload(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed result in bucket '%s': %r", key, entry)
        records.sort(key=lambda record: record.moves)
        highscores[str(key)] = records[:LEADERBOARD_LIMIT]
    return highscores


def insert_record(records: List[ResultRecord], record: ResultRecord, limit: int = LEADERBOARD_LIMIT) -> List[ResultRecord]:
    """Return ``records`` plus ``record``, ascending by moves, top ``limit`` kept.

    Ties keep insertion order, so an equal newcomer ranks below older entries.
    """
    updated = sorted([*records, record], key=lambda entry: entry.moves)
    return updated[:limit]


class ProgressSystem:
    """Leaderboards, player profile and derived puzzle-pack unlocks.

    Results are the only source of truth for pack progress; the stored
    ``puzzle_progress`` entry is a cache that is rewritten after every load
    and mutation and never read back as authority.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        storage: KeyValueStorage | None = None,
        save_dir: Path | None = None,
        load_existing: bool = True,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._storage: KeyValueStorage = storage or LocalFileStorage(save_dir or self._default_save_dir())
        self._tracker_entity = self._ensure_tracker_entity()

        self.event_bus.subscribe(EVENT_ROUND_WON, self._on_round_won)
        self.event_bus.subscribe(EVENT_ROUND_STARTED, self._on_round_started)

        if load_existing:
            self.load_progress()
        else:
            self._refresh_unlocks(announce=False)

    @staticmethod
    def _default_save_dir() -> Path:
        return Path(__file__).resolve().parents[3] / "data"

    def _ensure_tracker_entity(self) -> int:
        existing = list(self.world.get_component(ProgressTracker))
        if existing:
            return existing[0][0]
        return self.world.create_entity(ProgressTracker())

    def _tracker(self) -> ProgressTracker:
        return self.world.component_for_entity(self._tracker_entity, ProgressTracker)

    @property
    def profile(self) -> PlayerProfile:
        return self._tracker().profile

    # Persistence --------------------------------------------------------

    def load_progress(self) -> None:
        tracker = self._tracker()
        tracker.highscores = deserialize_highscores(self._load_json(STORAGE_KEY_HIGHSCORES, {}))
        tracker.profile = self._profile_from_payload(self._load_json(STORAGE_KEY_PROFILE, {}))
        self._refresh_unlocks(announce=False)
        self._save_puzzle_progress()

    def save_progress(self) -> None:
        self._save_highscores()
        self._save_profile()
        self._save_puzzle_progress()

    def _load_json(self, key: str, default: Any) -> Any:
        try:
            raw = self._storage.load(key)
        except Exception:
            logger.exception("Failed to load '%s'; starting from defaults", key)
            return default
        if raw is None:
            return default
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable '%s' payload", key)
            return default
        if not isinstance(payload, type(default)):
            logger.warning("Ignoring '%s' payload of unexpected type %s", key, type(payload).__name__)
            return default
        return payload

    def _save_json(self, key: str, payload: Any) -> bool:
        try:
            encoded = json.dumps(payload, indent=2)
            saved = self._storage.save(key, encoded)
        except Exception:
            logger.exception("Failed to persist '%s'; keeping in-memory state", key)
            return False
        if not saved:
            logger.warning("Storage rejected '%s'; keeping in-memory state", key)
        return saved

    def _save_highscores(self) -> bool:
        return self._save_json(STORAGE_KEY_HIGHSCORES, serialize_highscores(self._tracker().highscores))

    def _save_profile(self) -> bool:
        return self._save_json(STORAGE_KEY_PROFILE, asdict(self._tracker().profile))

    def _save_puzzle_progress(self) -> bool:
        packs = self._tracker().packs
        return self._save_json(
            STORAGE_KEY_PUZZLE_PROGRESS,
            {
                name: {"unlocked": progress.unlocked, "completedIndices": sorted(progress.completed_indices)}
                for name, progress in packs.items()
            },
        )

    @staticmethod
    def _profile_from_payload(payload: Mapping[str, Any]) -> PlayerProfile:
        known = {field.name for field in fields(PlayerProfile)}
        values = {key: value for key, value in payload.items() if key in known}
        try:
            return PlayerProfile(**values)
        except TypeError:
            logger.warning("Ignoring malformed profile payload")
            return PlayerProfile()

    # Leaderboards -------------------------------------------------------

    def record_result(self, bucket_key: str, record: ResultRecord) -> int | None:
        """Insert ``record`` and persist; returns its rank or None if it did not place."""
        tracker = self._tracker()
        updated = insert_record(tracker.highscores.get(bucket_key, []), record)
        tracker.highscores[bucket_key] = updated
        rank = next((position for position, entry in enumerate(updated) if entry is record), None)
        self._save_highscores()
        self._refresh_unlocks()
        self._save_puzzle_progress()
        self.event_bus.emit(EVENT_RESULT_RECORDED, bucket_key=bucket_key, record=record, rank=rank)
        return rank

    def highscores(self, bucket_key: str) -> List[ResultRecord]:
        return list(self._tracker().highscores.get(bucket_key, []))

    def all_highscores(self) -> Highscores:
        return {key: list(records) for key, records in self._tracker().highscores.items()}

    def reset_highscores(self) -> None:
        tracker = self._tracker()
        tracker.highscores = {}
        try:
            removed = self._storage.remove(STORAGE_KEY_HIGHSCORES)
        except Exception:
            logger.exception("Failed to remove stored high scores")
            removed = False
        if not removed:
            logger.warning("Could not remove stored high scores")
        self._refresh_unlocks()
        self._save_puzzle_progress()
        self.event_bus.emit(EVENT_HIGHSCORES_RESET)

    # Puzzle progress ----------------------------------------------------

    def is_puzzle_completed(self, pack: str, index: int) -> bool:
        return bool(self._tracker().highscores.get(bucket_key_for_puzzle(pack, index)))

    def is_pack_completed(self, pack: str) -> bool:
        return all(self.is_puzzle_completed(pack, index) for index in range(len(get_pack(pack))))

    def is_pack_unlocked(self, pack: str) -> bool:
        return self.unlock_state()[pack].unlocked

    def is_puzzle_unlocked(self, pack: str, index: int) -> bool:
        if not self.is_pack_unlocked(pack):
            return False
        return all(self.is_puzzle_completed(pack, earlier) for earlier in range(index))

    def unlock_state(self) -> Dict[str, PackProgress]:
        packs: Dict[str, PackProgress] = {}
        previous_completed = True
        for name in PACK_ORDER:
            completed = {index for index in range(len(get_pack(name))) if self.is_puzzle_completed(name, index)}
            packs[name] = PackProgress(unlocked=previous_completed, completed_indices=completed)
            previous_completed = len(completed) == len(get_pack(name))
        return packs

    def next_playable_puzzle(self) -> PuzzleRef | None:
        """First unlocked puzzle not yet solved, in pack order."""
        for name, progress in self.unlock_state().items():
            if not progress.unlocked:
                break
            for index in range(len(get_pack(name))):
                if index not in progress.completed_indices:
                    return PuzzleRef(name, index)
        return None

    def _refresh_unlocks(self, *, announce: bool = True) -> None:
        tracker = self._tracker()
        previous = {name: progress.unlocked for name, progress in tracker.packs.items()}
        tracker.packs = self.unlock_state()
        current = {name: progress.unlocked for name, progress in tracker.packs.items()}
        if announce and current != previous:
            self.event_bus.emit(EVENT_UNLOCKS_CHANGED, unlocked=current)

    # Profile ------------------------------------------------------------

    def set_player_name(self, name: str) -> None:
        self.update_settings(player_name=name.strip())

    def update_settings(self, **changes: Any) -> PlayerProfile:
        profile = self._tracker().profile
        for key, value in changes.items():
            if not hasattr(profile, key):
                raise AttributeError(f"Unknown setting '{key}'")
            setattr(profile, key, value)
        self._save_profile()
        self.event_bus.emit(EVENT_SETTINGS_CHANGED, profile=profile)
        return profile

    # Event handlers -----------------------------------------------------

    def _on_round_won(self, sender, **payload) -> None:
        record = payload.get("record")
        bucket_key = payload.get("bucket_key")
        if record is None or bucket_key is None:
            return
        self.record_result(bucket_key, record)

    def _on_round_started(self, sender, **payload) -> None:
        mode = payload.get("mode")
        size = payload.get("size")
        if mode is None or size is None:
            return
        profile = self._tracker().profile
        profile.last_mode = mode.value
        profile.last_size = int(size)
        self._save_profile()
