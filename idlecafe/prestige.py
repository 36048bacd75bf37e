"""
prestige.py — Trade the current run for a permanent production bonus.
"""
from __future__ import annotations

from dataclasses import replace

from .catalog import Catalog
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .state import PlayerState


class PrestigeManager:
    """Gates prestige on lifetime production and resets the run.

    Lifetime stats (total_produced, total_taps), claimed milestones,
    reward_tokens and the active boost carry over. Coins and every
    upgrade level go back to zero.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def cost(self, state: PlayerState) -> float:
        """total_produced required for the next prestige level."""
        return self.catalog.prestige.cost(state.prestige_level)

    def can_prestige(self, state: PlayerState) -> bool:
        return state.total_produced >= self.cost(state)

    def prestige(self, state: PlayerState) -> Outcome:
        """value = the new prestige level."""
        needed = self.cost(state)
        if state.total_produced < needed:
            return Rejected(
                RejectReason.PRESTIGE_NOT_READY,
                f"prestige {state.prestige_level + 1} needs {needed:g} produced, have {int(state.total_produced)}",
            )
        level = state.prestige_level + 1
        new_state = replace(
            state,
            coins=0.0,
            upgrade_levels={k: 0 for k in self.catalog.upgrades},
            prestige_level=level,
        )
        return Applied(new_state, value=level)

    def status(self, state: PlayerState) -> dict:
        return {
            "level": state.prestige_level,
            "next_cost": self.cost(state),
            "ready": self.can_prestige(state),
            "multiplier": self.catalog.prestige.multiplier(state.prestige_level),
        }
