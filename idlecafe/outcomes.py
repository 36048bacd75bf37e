"""
outcomes.py — Typed results returned by every economy transform.
Game-rule violations come back as Rejected; they are never raised.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .state import PlayerState


class RejectReason(str, Enum):
    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    MAX_LEVEL_REACHED = "max_level_reached"
    MILESTONE_NOT_EARNED = "milestone_not_earned"
    ALREADY_CLAIMED = "already_claimed"
    PRESTIGE_NOT_READY = "prestige_not_ready"
    STALE_STATE = "stale_state"


@dataclass(frozen=True)
class ReconcileDelta:
    coins_gained: float = 0.0
    produced_gained: float = 0.0
    seconds_credited: int = 0

    def is_zero(self) -> bool:
        return self.coins_gained == 0 and self.produced_gained == 0

    def to_dict(self) -> dict:
        return {
            "coins": self.coins_gained,
            "produced": self.produced_gained,
            "seconds": self.seconds_credited,
        }


NO_DELTA = ReconcileDelta()


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    detail: str = ""

    ok = False

    def to_dict(self) -> dict:
        return {"error": self.reason.value, "detail": self.detail}


@dataclass(frozen=True)
class Applied:
    state: PlayerState
    value: Any = None               # cost, reward, delta, boost... per operation
    idle: ReconcileDelta = NO_DELTA  # opportunistic reconciliation done on load

    ok = True


Outcome = Union[Applied, Rejected]
