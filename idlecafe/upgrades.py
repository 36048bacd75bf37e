"""
upgrades.py — Upgrade pricing and purchase validation against the cost tables.
"""
from __future__ import annotations

from dataclasses import replace

from .catalog import Catalog
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .state import PlayerState


class UpgradeShop:
    """Validates and applies upgrade purchases. Does not reconcile idle time."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def cost(self, state: PlayerState, kind: str) -> float | None:
        """Price of the next level, or None if unknown or maxed."""
        u = self.catalog.upgrades.get(kind)
        if u is None:
            return None
        return u.cost_at(state.level(kind))

    def purchase(self, state: PlayerState, kind: str) -> Outcome:
        u = self.catalog.upgrades.get(kind)
        if u is None:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown upgrade {kind!r}")

        level = state.level(kind)
        cost = u.cost_at(level)
        # A missing price-table entry means maxed
        if level >= u.max_level or cost is None:
            return Rejected(RejectReason.MAX_LEVEL_REACHED, f"{kind} is at max level {u.max_level}")
        if state.coins < cost:
            return Rejected(
                RejectReason.INSUFFICIENT_FUNDS,
                f"{kind} level {level + 1} costs {cost:g}, have {state.display_coins}",
            )

        new_state = replace(state.with_level(kind, level + 1), coins=max(0.0, state.coins - cost))
        return Applied(new_state, value=cost)

    def quote(self, state: PlayerState) -> list[dict]:
        """Per-upgrade shop view in catalog order."""
        rows = []
        for kind, u in self.catalog.upgrades.items():
            level = state.level(kind)
            next_cost = u.cost_at(level)
            rows.append({
                "kind": kind,
                "name": u.name,
                "description": u.description,
                "behavior": u.behavior,
                "level": level,
                "max_level": u.max_level,
                "next_cost": next_cost,
                "maxed": next_cost is None,
                "affordable": next_cost is not None and state.coins >= next_cost,
            })
        return rows
