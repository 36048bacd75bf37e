"""
events.py — Audit trail: one JSON line per applied mutation.
"""
from __future__ import annotations

import json
from pathlib import Path

from .state import PlayerState


def _jsonable(value):
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "__dataclass_fields__"):
        return {k: getattr(value, k) for k in value.__dataclass_fields__}
    return value


class EventLogger:
    def __init__(self, log_file: str | Path | None = "events_log.jsonl"):
        # None keeps events in memory only (tests, throwaway servers)
        self.log_file = Path(log_file) if log_file else None
        self.latest: dict = {}
        self.count: int = 0

    def record(self, op: str, state: PlayerState, value=None, now: int = 0) -> dict:
        """Called after every successfully stored mutation."""
        entry = {
            "ts": now,
            "player_id": state.player_id,
            "op": op,
            "value": _jsonable(value),
            "coins": round(state.coins, 2),
            "total_produced": round(state.total_produced, 2),
        }
        self.latest = entry
        self.count += 1

        if self.log_file is not None:
            with open(self.log_file, "a") as f:
                f.write(json.dumps(entry) + "\n")
        return entry


def read_events(log_file: str | Path) -> list[dict]:
    path = Path(log_file)
    if not path.exists():
        return []
    with open(path, "r") as f:
        return [json.loads(line) for line in f if line.strip()]
