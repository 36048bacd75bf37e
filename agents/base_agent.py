"""
base_agent.py — Base class for Idle Cafe bot players.
"""
from __future__ import annotations

import asyncio
import aiohttp


class CafeAgent:
    """Base class for bots that play the idle economy over HTTP.

    Several agents may share one player_id; the server must then serialize
    their writes, which is what run_agents.py --shared exercises.
    """

    def __init__(self, name: str, server_url: str = "http://localhost:8000",
                 player_id: str | None = None, poll_interval: float = 1.0):
        self.name = name
        self.server_url = server_url
        self.player_id = player_id or name
        self.poll_interval = poll_interval
        self.state: dict | None = None
        self.local_age: int = 0
        self.rejections: dict[str, int] = {}

    async def _post(self, path: str, body: dict) -> dict:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.server_url}{path}",
                json={"player_id": self.player_id, **body},
            ) as resp:
                data = await resp.json()
                if resp.status >= 400:
                    reason = data.get("error", str(resp.status))
                    self.rejections[reason] = self.rejections.get(reason, 0) + 1
                return data

    async def get_state(self) -> dict:
        """GET the full snapshot (reconciles idle time server-side)."""
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{self.server_url}/game/state",
                params={"player_id": self.player_id},
            ) as resp:
                self.state = await resp.json()
                return self.state

    async def upgrade(self, kind: str) -> dict:
        return await self._post("/game/upgrade", {"upgrade": kind})

    async def claim(self, milestone: str) -> dict:
        return await self._post("/milestones/claim", {"milestone": milestone})

    async def boost(self, kind: str) -> dict:
        return await self._post("/boost", {"boost": kind})

    async def tap(self, taps: int = 1) -> dict:
        return await self._post("/game/tap", {"taps": taps})

    async def prestige(self) -> dict:
        return await self._post("/game/prestige", {})

    def think(self, snapshot: dict) -> dict:
        """
        Override this method.
        Receives the /game/state snapshot, returns one action:
        {"op": "upgrade"|"claim"|"boost"|"tap"|"prestige"|"wait", "arg": ...}
        """
        return {"op": "wait", "arg": None}

    async def act(self, action: dict) -> dict | None:
        op, arg = action.get("op"), action.get("arg")
        if op == "upgrade":
            return await self.upgrade(arg)
        if op == "claim":
            return await self.claim(arg)
        if op == "boost":
            return await self.boost(arg)
        if op == "tap":
            return await self.tap(arg or 1)
        if op == "prestige":
            return await self.prestige()
        return None

    async def run(self, max_steps: int | None = None):
        """Main agent loop."""
        print(f"[{self.name}] Playing as {self.player_id}")

        while max_steps is None or self.local_age < max_steps:
            try:
                snapshot = await self.get_state()
                action = self.think(snapshot)
                await self.act(action)
                self.local_age += 1

                # Telemetry every 50 steps
                if self.local_age % 50 == 0:
                    st = snapshot.get("state", {})
                    print(f"[{self.name}] step={self.local_age} coins={st.get('display_coins', '?')} rate={snapshot.get('rate', '?')} rejected={self.rejections}")

            except aiohttp.ClientError as e:
                print(f"[{self.name}] Connection error: {e}")

            await asyncio.sleep(self.poll_interval)
