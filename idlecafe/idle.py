"""
idle.py — Converts elapsed wall-clock time into coins (offline earnings).
"""
from __future__ import annotations

import math
from dataclasses import replace

from .catalog import Catalog
from .economy import EconomyCalculator
from .outcomes import NO_DELTA, Applied, ReconcileDelta
from .state import PlayerState


class IdleReconciler:
    def __init__(self, catalog: Catalog, calculator: EconomyCalculator | None = None):
        self.catalog = catalog
        self.calculator = calculator or EconomyCalculator(catalog)

    def cap_seconds(self, state: PlayerState) -> int:
        """Baseline cap, or the extended cap once the gate upgrade is owned."""
        policy = self.catalog.idle_cap
        if state.level(policy.extension_gate_upgrade) >= policy.extension_gate_level:
            return policy.extended_cap_seconds
        return policy.baseline_cap_seconds

    def reconcile(self, state: PlayerState, now: int) -> Applied:
        """Credit whole seconds since `last_reconciled_at`, capped.

        Rate is evaluated once, from the pre-reconciliation state at `now`.
        A boost that expired mid-window is therefore not pro-rated.
        A `now` earlier than the stored timestamp, or less than a whole
        second after it, is a no-op: the clock never moves backward.
        Otherwise the timestamp moves to `now`; the sub-second remainder
        and any time beyond the cap are forfeited.
        """
        now = int(now)
        elapsed = (now - state.last_reconciled_at) // 1000
        if elapsed <= 0:
            return Applied(state, value=NO_DELTA)

        effective = min(elapsed, self.cap_seconds(state))
        gained = float(math.floor(effective * self.calculator.rate(state, now)))

        new_state = replace(
            state,
            coins=state.coins + gained,
            total_produced=state.total_produced + gained,
            last_reconciled_at=now,
        )
        return Applied(new_state, value=ReconcileDelta(gained, gained, effective))
