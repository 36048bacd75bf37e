"""
milestones.py — One-time achievements. Evaluation is read-only;
claiming moves the id into claimed_milestones and pays reward_tokens.
"""
from __future__ import annotations

from dataclasses import replace

from .catalog import Catalog, Condition
from .outcomes import Applied, Outcome, Rejected, RejectReason
from .state import PlayerState


def condition_met(cond: Condition, state: PlayerState) -> bool:
    if cond.type == "total_produced":
        return state.total_produced >= cond.value
    if cond.type == "upgrade_level":
        return state.level(cond.upgrade) >= cond.value
    if cond.type == "total_taps":
        return state.total_taps >= cond.value
    if cond.type == "total_upgrades":
        return state.total_upgrades >= cond.value
    if cond.type == "prestige_level":
        return state.prestige_level >= cond.value
    return False


class MilestoneTracker:
    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def unclaimed(self, state: PlayerState) -> tuple[str, ...]:
        """Earned-but-unclaimed ids, in display order."""
        return tuple(
            m.id for m in self.catalog.milestones
            if not state.has_claimed(m.id) and condition_met(m.condition, state)
        )

    def progress(self, state: PlayerState) -> list[dict]:
        rows = []
        for m in self.catalog.milestones:
            rows.append({
                "id": m.id,
                "name": m.name,
                "reward": m.reward,
                "claimed": state.has_claimed(m.id),
                "earned": condition_met(m.condition, state),
            })
        return rows

    def claim(self, state: PlayerState, milestone_id: str) -> Outcome:
        m = self.catalog.milestone(milestone_id)
        if m is None:
            return Rejected(RejectReason.INVALID_INPUT, f"unknown milestone {milestone_id!r}")
        if state.has_claimed(m.id):
            return Rejected(RejectReason.ALREADY_CLAIMED, f"{m.id} was already claimed")
        if not condition_met(m.condition, state):
            return Rejected(RejectReason.MILESTONE_NOT_EARNED, f"{m.id} not earned yet")

        new_state = replace(
            state,
            claimed_milestones=state.claimed_milestones + (m.id,),
            reward_tokens=state.reward_tokens + m.reward,
        )
        return Applied(new_state, value=m.reward)
