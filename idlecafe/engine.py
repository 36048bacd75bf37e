"""
engine.py — GameEngine: load → reconcile → transform → compare-and-swap.
Wires the economy managers together the way the transport layer needs them.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from .boosts import BoostManager
from .catalog import Catalog
from .economy import EconomyCalculator
from .events import EventLogger
from .idle import IdleReconciler
from .milestones import MilestoneTracker
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .prestige import PrestigeManager
from .state import PlayerState, validate_player_id
from .store import MemoryStore, StateStore
from .upgrades import UpgradeShop

log = logging.getLogger(__name__)

Transform = Callable[[PlayerState, int], Outcome]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class GameEngine:
    """Per-player read-modify-write, serialized through store versions.

    Idle reconciliation runs on every load, so each operation sees
    up-to-date earnings before its own transform is applied.
    """

    def __init__(
        self,
        catalog: Catalog,
        store: StateStore | None = None,
        events: EventLogger | None = None,
        clock: Callable[[], int] | None = None,
        max_retries: int = 3,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.catalog = catalog
        self.store = store if store is not None else MemoryStore(catalog.upgrades.keys())
        self.events = events
        self.clock = clock or wall_clock_ms
        self.max_retries = max_retries

        # Sub-managers
        self.boosts = BoostManager(catalog)
        self.economy = EconomyCalculator(catalog, self.boosts)
        self.idle = IdleReconciler(catalog, self.economy)
        self.shop = UpgradeShop(catalog)
        self.milestones = MilestoneTracker(catalog)
        self.prestige_manager = PrestigeManager(catalog)

        self.conflicts: int = 0

    # ----- Core loop -----

    def _transact(self, op: str, player_id, now: int | None, transform: Transform | None) -> Outcome:
        pid = validate_player_id(player_id)
        if pid is None:
            return Rejected(RejectReason.INVALID_INPUT, "missing or malformed player id")
        now = int(self.clock()) if now is None else int(now)

        for attempt in range(1, self.max_retries + 1):
            loaded, version = self.store.load_versioned(pid, now)
            reconciled = self.idle.reconcile(loaded, now)
            idle_delta = reconciled.value
            current = reconciled.state

            outcome = transform(current, now) if transform else Applied(current, value=idle_delta)
            new_state = outcome.state if outcome.ok else current

            # Unchanged existing record: nothing to write
            if version > 0 and new_state == loaded:
                return self._finish(outcome, new_state, idle_delta)

            if self.store.store_if_unchanged(pid, version, new_state):
                if self.events is not None:
                    if not idle_delta.is_zero():
                        self.events.record("idle", current, idle_delta, now)
                    if outcome.ok and transform is not None:
                        self.events.record(op, new_state, outcome.value, now)
                return self._finish(outcome, new_state, idle_delta)

            self.conflicts += 1
            log.warning("%s for %s: version %d is stale (attempt %d/%d)", op, pid, version, attempt, self.max_retries)

        log.error("%s for %s: gave up after %d conflicting writes", op, pid, self.max_retries)
        return Rejected(RejectReason.STALE_STATE, f"{op} lost {self.max_retries} concurrent updates, retry")

    @staticmethod
    def _finish(outcome: Outcome, state: PlayerState, idle_delta) -> Outcome:
        if not outcome.ok:
            return outcome
        return Applied(state, value=outcome.value, idle=idle_delta)

    # ----- Operations -----

    def get_state(self, player_id, now: int | None = None) -> Outcome:
        """Load (creating on first contact) and credit idle time. value = idle delta."""
        return self._transact("state", player_id, now, None)

    def collect(self, player_id, now: int | None = None) -> Outcome:
        """Explicit collect; same crediting as any load. value = idle delta."""
        return self._transact("collect", player_id, now, None)

    def purchase(self, player_id, kind, now: int | None = None) -> Outcome:
        """value = cost paid."""
        if not isinstance(kind, str) or kind not in self.catalog.upgrades:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown upgrade {kind!r}")
        return self._transact("purchase", player_id, now, lambda s, t: self.shop.purchase(s, kind))

    def claim_milestone(self, player_id, milestone_id, now: int | None = None) -> Outcome:
        """value = reward credited to reward_tokens."""
        if not isinstance(milestone_id, str) or self.catalog.milestone(milestone_id) is None:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown milestone {milestone_id!r}")
        return self._transact("claim", player_id, now, lambda s, t: self.milestones.claim(s, milestone_id))

    def apply_boost(self, player_id, boost_kind, now: int | None = None) -> Outcome:
        """value = the new ActiveBoost. Idle time up to `now` is credited first, unboosted."""
        if not isinstance(boost_kind, str) or boost_kind not in self.catalog.boosts:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown boost {boost_kind!r}")
        return self._transact("boost", player_id, now, lambda s, t: self.boosts.apply(s, boost_kind, t))

    def tap(self, player_id, taps: int = 1, now: int | None = None) -> Outcome:
        """value = coins credited."""
        return self._transact("tap", player_id, now, lambda s, t: self.economy.tap(s, t, taps))

    def prestige(self, player_id, now: int | None = None) -> Outcome:
        """value = the new prestige level. Idle time is credited before the reset."""
        return self._transact("prestige", player_id, now, lambda s, t: self.prestige_manager.prestige(s))

    # ----- Views (reconcile, then read) -----

    def unclaimed_milestones(self, player_id, now: int | None = None) -> Outcome:
        res = self.get_state(player_id, now)
        if not res.ok:
            return res
        return Applied(res.state, value=self.milestones.unclaimed(res.state), idle=res.idle)

    def quote_upgrades(self, player_id, now: int | None = None) -> Outcome:
        res = self.get_state(player_id, now)
        if not res.ok:
            return res
        return Applied(res.state, value=self.shop.quote(res.state), idle=res.idle)

    def snapshot(self, player_id, now: int | None = None) -> Outcome:
        """Everything a client needs to render the shop in one call."""
        now = int(self.clock()) if now is None else int(now)
        res = self.get_state(player_id, now)
        if not res.ok:
            return res
        state = res.state
        view = {
            "state": state.to_dict(),
            "rate": self.economy.rate(state, now),
            "breakdown": self.economy.breakdown(state, now),
            "tap_value": self.economy.tap_value(state, now),
            "boost_remaining_ms": self.boosts.remaining_ms(state, now),
            "idle_cap_seconds": self.idle.cap_seconds(state),
            "unclaimed_milestones": list(self.milestones.unclaimed(state)),
            "upgrades": self.shop.quote(state),
            "prestige": self.prestige_manager.status(state),
            "idle_earnings": res.idle.to_dict(),
        }
        return Applied(state, value=view, idle=res.idle)
