"""
state.py — PlayerState: the single authoritative per-player record.
Every transform returns a new PlayerState; nothing is patched in place.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

MAX_PLAYER_ID_LEN = 128


@dataclass(frozen=True)
class ActiveBoost:
    kind: str
    multiplier: float
    expires_at: int  # epoch ms

    def is_active(self, now: int) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class PlayerState:
    player_id: str
    coins: float = 0.0            # fractional; displayed truncated
    total_produced: float = 0.0   # lifetime, never reduced by spending
    last_reconciled_at: int = 0   # epoch ms
    upgrade_levels: Mapping[str, int] = field(default_factory=dict)
    claimed_milestones: tuple[str, ...] = ()
    active_boost: ActiveBoost | None = None
    reward_tokens: float = 0.0    # milestone rewards, not spendable coins
    total_taps: int = 0
    prestige_level: int = 0

    def __post_init__(self):
        # Freeze the mapping so a transform can't leak a mutation into an older snapshot
        if not isinstance(self.upgrade_levels, MappingProxyType):
            object.__setattr__(self, "upgrade_levels", MappingProxyType(dict(self.upgrade_levels)))

    def level(self, kind: str) -> int:
        return int(self.upgrade_levels.get(kind, 0))

    @property
    def display_coins(self) -> int:
        return int(self.coins)

    @property
    def total_upgrades(self) -> int:
        return sum(self.upgrade_levels.values())

    def has_claimed(self, milestone_id: str) -> bool:
        return milestone_id in self.claimed_milestones

    def with_level(self, kind: str, level: int) -> "PlayerState":
        levels = dict(self.upgrade_levels)
        levels[kind] = level
        return replace(self, upgrade_levels=levels)

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict."""
        boost = None
        if self.active_boost is not None:
            boost = {
                "kind": self.active_boost.kind,
                "multiplier": self.active_boost.multiplier,
                "expires_at": self.active_boost.expires_at,
            }
        return {
            "player_id": self.player_id,
            "coins": self.coins,
            "display_coins": self.display_coins,
            "total_produced": self.total_produced,
            "last_reconciled_at": self.last_reconciled_at,
            "upgrade_levels": dict(self.upgrade_levels),
            "claimed_milestones": list(self.claimed_milestones),
            "active_boost": boost,
            "reward_tokens": self.reward_tokens,
            "total_taps": self.total_taps,
            "prestige_level": self.prestige_level,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PlayerState":
        """Load a record produced by to_dict()."""
        boost = d.get("active_boost")
        claimed: list[str] = []
        for mid in d.get("claimed_milestones", []):
            if str(mid) not in claimed:
                claimed.append(str(mid))
        return cls(
            player_id=str(d["player_id"]),
            coins=max(0.0, float(d.get("coins", 0.0))),
            total_produced=max(0.0, float(d.get("total_produced", 0.0))),
            last_reconciled_at=int(d.get("last_reconciled_at", 0)),
            upgrade_levels={str(k): int(v) for k, v in dict(d.get("upgrade_levels", {})).items()},
            claimed_milestones=tuple(claimed),
            active_boost=ActiveBoost(
                kind=str(boost["kind"]),
                multiplier=float(boost["multiplier"]),
                expires_at=int(boost["expires_at"]),
            ) if boost else None,
            reward_tokens=float(d.get("reward_tokens", 0.0)),
            total_taps=int(d.get("total_taps", 0)),
            prestige_level=int(d.get("prestige_level", 0)),
        )


def new_player_state(player_id: str, now: int, upgrade_kinds=()) -> PlayerState:
    """Default record on first contact: no coins, every level 0, clock starts now."""
    return PlayerState(
        player_id=player_id,
        last_reconciled_at=int(now),
        upgrade_levels={k: 0 for k in upgrade_kinds},
    )


def validate_player_id(player_id) -> str | None:
    """Normalized id, or None when malformed."""
    if isinstance(player_id, bool):
        return None
    if isinstance(player_id, int):
        player_id = str(player_id)
    if not isinstance(player_id, str):
        return None
    pid = player_id.strip()
    if not pid or len(pid) > MAX_PLAYER_ID_LEN:
        return None
    return pid
