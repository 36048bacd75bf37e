"""
main.py — FastAPI server exposing the idle coffee economy.
Translates engine outcomes into status codes; no game rules live here.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .catalog import Catalog, load_config
from .engine import GameEngine
from .events import EventLogger
from .outcomes import RejectReason
from .store import StoreError, make_store


# Load config
CONFIG_PATH = Path(os.environ.get("IDLECAFE_CONFIG", Path(__file__).parent.parent / "config.yaml"))

# Global engine instance
engine: GameEngine | None = None


def build_engine(config: dict, clock=None) -> GameEngine:
    """Validate the catalog and wire the engine. Raises CatalogError on bad config."""
    catalog = Catalog.from_config(config)
    store = make_store(config, catalog.upgrades.keys())
    events = EventLogger((config.get("events") or {}).get("log_file"))
    max_retries = int((config.get("store") or {}).get("max_retries", 3))
    return GameEngine(catalog, store, events=events, clock=clock, max_retries=max_retries)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global engine
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    # Fail fast: a broken catalog must stop the server before it serves anything
    engine = build_engine(load_config(CONFIG_PATH))
    cap = engine.catalog.idle_cap
    print(f"Idle Cafe started | Upgrades: {len(engine.catalog.upgrades)} | Milestones: {len(engine.catalog.milestones)} | Idle cap: {cap.baseline_cap_seconds}s/{cap.extended_cap_seconds}s")
    yield


app = FastAPI(title="Idle Cafe", lifespan=lifespan)


def _reject(outcome) -> JSONResponse:
    status = 409 if outcome.reason is RejectReason.STALE_STATE else 400
    return JSONResponse(outcome.to_dict(), status_code=status)


@app.exception_handler(StoreError)
async def store_error(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse({"error": "store_error", "detail": str(exc)}, status_code=500)


# ----- HTTP Endpoints -----

@app.get("/game/state")
def get_state(player_id: str = ""):
    res = engine.snapshot(player_id)
    if not res.ok:
        return _reject(res)
    return res.value


@app.post("/game/collect")
def collect(body: dict):
    res = engine.collect(body.get("player_id"))
    if not res.ok:
        return _reject(res)
    return {"state": res.state.to_dict(), "idle_earnings": res.value.to_dict()}


@app.post("/game/upgrade")
def upgrade(body: dict):
    res = engine.purchase(body.get("player_id"), body.get("upgrade"))
    if not res.ok:
        return _reject(res)
    return {
        "state": res.state.to_dict(),
        "cost": res.value,
        "idle_earnings": res.idle.to_dict(),
    }


@app.post("/game/tap")
def tap(body: dict):
    res = engine.tap(body.get("player_id"), body.get("taps", 1))
    if not res.ok:
        return _reject(res)
    return {"state": res.state.to_dict(), "gained": res.value}


@app.post("/game/prestige")
def prestige(body: dict):
    res = engine.prestige(body.get("player_id"))
    if not res.ok:
        return _reject(res)
    return {
        "state": res.state.to_dict(),
        "prestige": engine.prestige_manager.status(res.state),
        "message": f"Prestige {res.value}: +{engine.catalog.prestige.bonus_per_level * res.value:.0%} production",
    }


@app.get("/milestones")
def milestones(player_id: str = ""):
    res = engine.unclaimed_milestones(player_id)
    if not res.ok:
        return _reject(res)
    return {
        "unclaimed": list(res.value),
        "progress": engine.milestones.progress(res.state),
        "reward_tokens": res.state.reward_tokens,
    }


@app.post("/milestones/claim")
def claim_milestone(body: dict):
    milestone = body.get("milestone")
    res = engine.claim_milestone(body.get("player_id"), milestone)
    if not res.ok:
        return _reject(res)
    mdef = engine.catalog.milestone(milestone)
    return {
        "state": res.state.to_dict(),
        "reward": res.value,
        "message": f"Claimed {res.value:g} tokens for: {mdef.name}",
    }


@app.post("/boost")
def boost(body: dict):
    res = engine.apply_boost(body.get("player_id"), body.get("boost"))
    if not res.ok:
        return _reject(res)
    b = res.value
    minutes = engine.catalog.boosts[b.kind].duration_ms // 60000
    return {
        "state": res.state.to_dict(),
        "boost": {"kind": b.kind, "multiplier": b.multiplier, "expires_at": b.expires_at},
        "message": f"{b.multiplier:g}x boost active for {minutes} min",
    }


@app.get("/catalog")
def catalog():
    return engine.catalog.to_dict()


@app.get("/stats")
def stats():
    return {
        "write_conflicts": engine.conflicts,
        "events_logged": engine.events.count if engine.events else 0,
        "latest_event": engine.events.latest if engine.events else {},
    }


# ----- Entry point -----

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "idlecafe.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )
