"""
run_agents.py — Launch multiple agents simultaneously.
Usage: python agents/run_agents.py --count 10 --type mix [--shared cafe_1]
"""
from __future__ import annotations

import asyncio
import argparse
import sys
import os

# Add agents dir to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from base_agent import CafeAgent
from random_agent import RandomAgent
from greedy_agent import GreedyAgent


def build_agents(count: int, agent_type: str, server: str,
                 shared: str | None = None, poll: float = 1.0) -> list[CafeAgent]:
    agents: list[CafeAgent] = []
    for i in range(count):
        if agent_type == "random":
            cls = RandomAgent
        elif agent_type == "greedy":
            cls = GreedyAgent
        else:
            # Mix: 30% random, 70% greedy
            cls = RandomAgent if i < count * 0.3 else GreedyAgent
        name = f"{cls.__name__.replace('Agent', '').lower()}_{i}"
        # --shared points every agent at one player record to provoke write conflicts
        agents.append(cls(name, server, player_id=shared, poll_interval=poll))
    return agents


async def main(count: int, agent_type: str, server: str, shared: str | None,
               steps: int | None, poll: float):
    agents = build_agents(count, agent_type, server, shared, poll)
    print(f"Launching {count} agents ({agent_type}) -> {server}")
    if shared:
        print(f"All agents share player {shared!r}")
    await asyncio.gather(*[a.run(max_steps=steps) for a in agents])

    totals: dict[str, int] = {}
    for a in agents:
        for reason, n in a.rejections.items():
            totals[reason] = totals.get(reason, 0) + n
    print(f"Rejections: {totals}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Launch Idle Cafe bot players")
    parser.add_argument("--count", type=int, default=10, help="Number of agents")
    parser.add_argument(
        "--type",
        choices=["random", "greedy", "mix"],
        default="mix",
        help="Agent type",
    )
    parser.add_argument("--server", default="http://localhost:8000", help="Server URL")
    parser.add_argument("--shared", default=None, help="Player id shared by all agents")
    parser.add_argument("--steps", type=int, default=None, help="Stop after N steps per agent")
    parser.add_argument("--poll", type=float, default=1.0, help="Seconds between steps")
    args = parser.parse_args()
    asyncio.run(main(args.count, args.type, args.server, args.shared, args.steps, args.poll))
