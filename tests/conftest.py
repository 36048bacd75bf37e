from __future__ import annotations

import pytest

from idlecafe.catalog import Catalog
from idlecafe.state import PlayerState

T0 = 1_700_000_000_000  # epoch ms


def make_config() -> dict:
    return {
        "economy": {"base_rate": 1.0, "tap_value": 1.0},
        "upgrades": {
            "beans": {"behavior": "proportional", "value": 1.5, "costs": [100, 250, 600]},
            "espresso": {"behavior": "additive", "value": 2, "costs": [50, 400]},
            "barista": {"behavior": "additive", "value": 1, "costs": [500]},
            "locations": {"behavior": "doubling", "value": 2, "costs": [5000, 50000]},
        },
        "milestones": [
            {"id": "produced_100", "condition": {"type": "total_produced", "value": 100},
             "reward": 5, "display_order": 10},
            {"id": "first_barista", "condition": {"type": "upgrade_level", "upgrade": "barista", "value": 1},
             "reward": 10, "display_order": 20},
            {"id": "taps_5", "condition": {"type": "total_taps", "value": 5},
             "reward": 1, "display_order": 5},
            {"id": "upgrades_3", "condition": {"type": "total_upgrades", "value": 3},
             "reward": 2, "display_order": 30},
            {"id": "prestige_1", "condition": {"type": "prestige_level", "value": 1},
             "reward": 50, "display_order": 40},
        ],
        "boosts": {
            "speed": {"multiplier": 2.0, "duration_ms": 3_600_000},
            "rush": {"multiplier": 3.0, "duration_ms": 600_000},
        },
        "idle_cap": {
            "baseline_cap_seconds": 28_800,
            "extended_cap_seconds": 86_400,
            "extension_gate_upgrade": "barista",
        },
        "prestige": {"base_cost": 1000, "cost_growth": 2, "bonus_per_level": 0.1},
        "store": {"backend": "memory", "max_retries": 3},
        "events": {"log_file": None},
    }


def player(**kw) -> PlayerState:
    kw.setdefault("player_id", "p1")
    kw.setdefault("last_reconciled_at", T0)
    return PlayerState(**kw)


@pytest.fixture
def config() -> dict:
    return make_config()


@pytest.fixture
def catalog(config) -> Catalog:
    return Catalog.from_config(config)


class Clock:
    """Settable clock for the engine."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock() -> Clock:
    return Clock()
