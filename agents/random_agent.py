"""
random_agent.py — Baseline agent with random actions.
"""
from __future__ import annotations

import random
from base_agent import CafeAgent

BOOSTS = ["speed", "rush_hour"]


class RandomAgent(CafeAgent):
    """Taps, buys and boosts at random, ignoring whether it can afford anything."""

    def think(self, snapshot: dict) -> dict:
        roll = random.random()
        upgrades = [u["kind"] for u in snapshot.get("upgrades", [])]
        if roll < 0.5 or not upgrades:
            return {"op": "tap", "arg": random.randint(1, 20)}
        if roll < 0.9:
            return {"op": "upgrade", "arg": random.choice(upgrades)}
        return {"op": "boost", "arg": random.choice(BOOSTS)}


if __name__ == "__main__":
    import asyncio

    agent = RandomAgent("random_solo", "http://localhost:8000")
    asyncio.run(agent.run())
