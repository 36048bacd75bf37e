"""
boosts.py — Time-boxed production multipliers. One active boost at most;
a new one overwrites the old. Expiry is checked lazily against `now`.
"""
from __future__ import annotations

from dataclasses import replace

from .catalog import Catalog
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .state import ActiveBoost, PlayerState


class BoostManager:
    """Applies and evaluates boosts from the boost catalog."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def active_multiplier(self, state: PlayerState, now: int) -> float:
        """Multiplier in effect at `now`; an expired boost counts as absent."""
        boost = state.active_boost
        if boost is None or not boost.is_active(now):
            return 1.0
        return boost.multiplier

    def remaining_ms(self, state: PlayerState, now: int) -> int:
        boost = state.active_boost
        if boost is None:
            return 0
        return max(0, boost.expires_at - now)

    def apply(self, state: PlayerState, boost_kind: str, now: int) -> Outcome:
        """Overwrite any existing boost with a fresh one starting at `now`.

        No stacking and no extension: applying the same boost twice leaves
        a single boost whose expiry is measured from the later call.
        """
        bdef = self.catalog.boosts.get(boost_kind)
        if bdef is None:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown boost {boost_kind!r}")
        boost = ActiveBoost(
            kind=bdef.kind,
            multiplier=bdef.multiplier,
            expires_at=int(now) + bdef.duration_ms,
        )
        return Applied(replace(state, active_boost=boost), value=boost)
