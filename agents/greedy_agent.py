"""
greedy_agent.py — Agent that always buys the cheapest affordable upgrade.
"""
from __future__ import annotations

from base_agent import CafeAgent


class GreedyAgent(CafeAgent):
    """Claims milestones first, prestiges when ready, then buys the cheapest upgrade it can afford, else taps."""

    def think(self, snapshot: dict) -> dict:
        unclaimed = snapshot.get("unclaimed_milestones", [])
        if unclaimed:
            return {"op": "claim", "arg": unclaimed[0]}

        if snapshot.get("prestige", {}).get("ready"):
            return {"op": "prestige", "arg": None}

        affordable = [u for u in snapshot.get("upgrades", []) if u.get("affordable")]
        if affordable:
            cheapest = min(affordable, key=lambda u: u["next_cost"])
            return {"op": "upgrade", "arg": cheapest["kind"]}

        return {"op": "tap", "arg": 10}


if __name__ == "__main__":
    import asyncio

    agent = GreedyAgent("greedy_solo", "http://localhost:8000")
    asyncio.run(agent.run())
