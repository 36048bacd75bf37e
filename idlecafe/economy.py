"""
economy.py — Production rate and manual taps from state. Pure; rate never fails.
Order is fixed: base → proportional → additive → doubling → prestige → boost.
"""
from __future__ import annotations

from dataclasses import replace

from .boosts import BoostManager
from .catalog import Catalog
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .state import PlayerState

MAX_TAPS_PER_REQUEST = 1000


class EconomyCalculator:
    """Interprets each upgrade's declared behavior tag. No per-kind branches."""

    def __init__(self, catalog: Catalog, boosts: BoostManager | None = None):
        self.catalog = catalog
        self.boosts = boosts or BoostManager(catalog)

    def _factors(self, state: PlayerState) -> tuple[float, float, float]:
        proportional = 1.0
        additive = 0.0
        doubling = 1.0
        for kind, u in self.catalog.upgrades.items():
            # Clamp stored levels into catalog bounds so a stale record can't blow up the rate
            level = min(max(state.level(kind), 0), u.max_level)
            if level == 0:
                continue
            if u.behavior == "proportional":
                proportional *= u.value ** level
            elif u.behavior == "additive":
                additive += u.value * level
            elif u.behavior == "doubling":
                doubling *= u.value ** level
        return proportional, additive, doubling

    def prestige_multiplier(self, state: PlayerState) -> float:
        return self.catalog.prestige.multiplier(state.prestige_level)

    def rate(self, state: PlayerState, now: int) -> float:
        """Coins per second at `now`."""
        proportional, additive, doubling = self._factors(state)
        r = (self.catalog.base_rate * proportional + additive) * doubling
        r *= self.prestige_multiplier(state)
        r *= self.boosts.active_multiplier(state, now)
        return max(0.0, r)

    def tap_value(self, state: PlayerState, now: int) -> float:
        """Coins per manual tap. Doubling upgrades, prestige and boosts apply; production upgrades don't."""
        _, _, doubling = self._factors(state)
        return (
            self.catalog.tap_value * doubling
            * self.prestige_multiplier(state)
            * self.boosts.active_multiplier(state, now)
        )

    def tap(self, state: PlayerState, now: int, taps: int = 1) -> Outcome:
        """Credit manual taps. Counts toward total_produced like idle output."""
        if isinstance(taps, bool) or not isinstance(taps, int) or not 0 < taps <= MAX_TAPS_PER_REQUEST:
            return Rejected(RejectReason.INVALID_INPUT, f"taps must be 1..{MAX_TAPS_PER_REQUEST}")
        gained = taps * self.tap_value(state, now)
        new_state = replace(
            state,
            coins=state.coins + gained,
            total_produced=state.total_produced + gained,
            total_taps=state.total_taps + taps,
        )
        return Applied(new_state, value=gained)

    def breakdown(self, state: PlayerState, now: int) -> dict:
        proportional, additive, doubling = self._factors(state)
        return {
            "base": self.catalog.base_rate,
            "proportional": proportional,
            "additive": additive,
            "doubling": doubling,
            "prestige": self.prestige_multiplier(state),
            "boost": self.boosts.active_multiplier(state, now),
            "rate": self.rate(state, now),
        }
