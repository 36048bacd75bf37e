"""
catalog.py — Upgrade, milestone and boost catalogs plus the idle cap policy.
Loaded once from config.yaml and validated before any request is served.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

log = logging.getLogger(__name__)

BEHAVIORS = ("proportional", "additive", "doubling")
CONDITION_TYPES = ("total_produced", "upgrade_level", "total_taps", "total_upgrades", "prestige_level")


class CatalogError(ValueError):
    """Corrupted catalog configuration. Fatal at startup."""


@dataclass(frozen=True)
class UpgradeDef:
    kind: str
    behavior: str  # proportional | additive | doubling
    value: float   # growth factor, flat bonus/sec, or doubling base
    costs: tuple[float, ...]
    name: str = ""
    description: str = ""

    @property
    def max_level(self) -> int:
        return len(self.costs)

    def cost_at(self, level: int) -> float | None:
        """Price of going from `level` to `level + 1`, None once maxed."""
        if 0 <= level < len(self.costs):
            return self.costs[level]
        return None


@dataclass(frozen=True)
class Condition:
    type: str
    value: float
    upgrade: str | None = None


@dataclass(frozen=True)
class MilestoneDef:
    id: str
    condition: Condition
    reward: float
    display_order: int
    name: str = ""


@dataclass(frozen=True)
class BoostDef:
    kind: str
    multiplier: float
    duration_ms: int
    name: str = ""


@dataclass(frozen=True)
class IdleCapPolicy:
    baseline_cap_seconds: int
    extended_cap_seconds: int
    extension_gate_upgrade: str
    extension_gate_level: int = 1


@dataclass(frozen=True)
class PrestigePolicy:
    base_cost: float = 100_000  # total_produced needed for the first prestige
    cost_growth: float = 2.0
    bonus_per_level: float = 0.1  # +10% production per prestige level

    def cost(self, level: int) -> float:
        return float(int(self.base_cost * self.cost_growth ** level))

    def multiplier(self, level: int) -> float:
        return 1 + max(level, 0) * self.bonus_per_level


@dataclass(frozen=True)
class Catalog:
    base_rate: float
    tap_value: float
    upgrades: Mapping[str, UpgradeDef]
    milestones: tuple[MilestoneDef, ...]
    boosts: Mapping[str, BoostDef]
    idle_cap: IdleCapPolicy
    prestige: PrestigePolicy = PrestigePolicy()

    @classmethod
    def from_config(cls, config: dict) -> "Catalog":
        """Build and validate a catalog from the parsed config.yaml dict."""
        if not isinstance(config, dict):
            raise CatalogError("config must be a mapping")
        eco = config.get("economy", {}) or {}
        base_rate = _number(eco.get("base_rate", 1.0), "economy.base_rate")
        tap_value = _number(eco.get("tap_value", 1.0), "economy.tap_value")
        if base_rate < 0:
            raise CatalogError("economy.base_rate must be >= 0")
        if tap_value < 0:
            raise CatalogError("economy.tap_value must be >= 0")

        upgrades = {}
        for kind, info in (config.get("upgrades") or {}).items():
            upgrades[str(kind)] = _parse_upgrade(str(kind), info)
        if not upgrades:
            raise CatalogError("catalog declares no upgrades")

        milestones = []
        seen: set[str] = set()
        for i, info in enumerate(config.get("milestones") or []):
            m = _parse_milestone(info, i, upgrades)
            if m.id in seen:
                raise CatalogError(f"duplicate milestone id {m.id!r}")
            seen.add(m.id)
            milestones.append(m)
        # Stable sort: declaration order breaks display_order ties
        milestones.sort(key=lambda m: m.display_order)

        boosts = {}
        for kind, info in (config.get("boosts") or {}).items():
            boosts[str(kind)] = _parse_boost(str(kind), info)

        idle_cap = _parse_idle_cap(config.get("idle_cap") or {}, upgrades)
        prestige = _parse_prestige(config.get("prestige") or {})

        catalog = cls(
            base_rate=base_rate,
            tap_value=tap_value,
            upgrades=MappingProxyType(upgrades),
            milestones=tuple(milestones),
            boosts=MappingProxyType(boosts),
            idle_cap=idle_cap,
            prestige=prestige,
        )
        log.info(
            "catalog loaded: %d upgrades, %d milestones, %d boosts",
            len(upgrades), len(milestones), len(boosts),
        )
        return catalog

    def milestone(self, milestone_id: str) -> MilestoneDef | None:
        for m in self.milestones:
            if m.id == milestone_id:
                return m
        return None

    def to_dict(self) -> dict:
        """JSON-friendly view for clients."""
        return {
            "base_rate": self.base_rate,
            "tap_value": self.tap_value,
            "upgrades": [
                {
                    "kind": u.kind,
                    "name": u.name,
                    "description": u.description,
                    "behavior": u.behavior,
                    "value": u.value,
                    "costs": list(u.costs),
                    "max_level": u.max_level,
                }
                for u in self.upgrades.values()
            ],
            "milestones": [
                {
                    "id": m.id,
                    "name": m.name,
                    "condition": {
                        "type": m.condition.type,
                        "value": m.condition.value,
                        "upgrade": m.condition.upgrade,
                    },
                    "reward": m.reward,
                    "display_order": m.display_order,
                }
                for m in self.milestones
            ],
            "boosts": [
                {"kind": b.kind, "name": b.name, "multiplier": b.multiplier, "duration_ms": b.duration_ms}
                for b in self.boosts.values()
            ],
            "idle_cap": {
                "baseline_cap_seconds": self.idle_cap.baseline_cap_seconds,
                "extended_cap_seconds": self.idle_cap.extended_cap_seconds,
                "extension_gate_upgrade": self.idle_cap.extension_gate_upgrade,
                "extension_gate_level": self.idle_cap.extension_gate_level,
            },
            "prestige": {
                "base_cost": self.prestige.base_cost,
                "cost_growth": self.prestige.cost_growth,
                "bonus_per_level": self.prestige.bonus_per_level,
            },
        }


def load_config(path: str | Path) -> dict:
    """Read config.yaml."""
    with open(path) as f:
        config = yaml.safe_load(f)
    if not isinstance(config, dict):
        raise CatalogError(f"{path}: expected a mapping at top level")
    return config


def load_catalog(path: str | Path) -> Catalog:
    return Catalog.from_config(load_config(path))


# ----- Parsing helpers -----

def _number(x, where: str) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise CatalogError(f"{where}: expected a number, got {x!r}")
    return float(x)


def _parse_upgrade(kind: str, info) -> UpgradeDef:
    if not isinstance(info, dict):
        raise CatalogError(f"upgrade {kind!r}: expected a mapping")
    behavior = info.get("behavior")
    if behavior not in BEHAVIORS:
        raise CatalogError(f"upgrade {kind!r}: unknown behavior {behavior!r}")
    value = _number(info.get("value"), f"upgrade {kind!r} value")
    # Growth below 1 (or a negative flat bonus) would make rate decrease with level
    if behavior == "additive" and value < 0:
        raise CatalogError(f"upgrade {kind!r}: additive value must be >= 0")
    if behavior != "additive" and value < 1:
        raise CatalogError(f"upgrade {kind!r}: {behavior} value must be >= 1")
    raw_costs = info.get("costs")
    if not isinstance(raw_costs, list) or not raw_costs:
        raise CatalogError(f"upgrade {kind!r}: missing cost table")
    costs = tuple(_number(c, f"upgrade {kind!r} costs") for c in raw_costs)
    if any(c < 0 for c in costs):
        raise CatalogError(f"upgrade {kind!r}: negative cost")
    return UpgradeDef(
        kind=kind,
        behavior=behavior,
        value=value,
        costs=costs,
        name=str(info.get("name", kind)),
        description=str(info.get("description", "")),
    )


def _parse_milestone(info, index: int, upgrades: dict) -> MilestoneDef:
    if not isinstance(info, dict) or not info.get("id"):
        raise CatalogError(f"milestone #{index}: missing id")
    mid = str(info["id"])
    cond = info.get("condition")
    if not isinstance(cond, dict):
        raise CatalogError(f"milestone {mid!r}: missing condition")
    ctype = cond.get("type")
    if ctype not in CONDITION_TYPES:
        raise CatalogError(f"milestone {mid!r}: unknown condition type {ctype!r}")
    upgrade = cond.get("upgrade")
    if ctype == "upgrade_level" and upgrade not in upgrades:
        raise CatalogError(f"milestone {mid!r}: unknown upgrade {upgrade!r}")
    order = info.get("display_order", index)
    if isinstance(order, bool) or not isinstance(order, int):
        raise CatalogError(f"milestone {mid!r}: display_order must be an integer")
    return MilestoneDef(
        id=mid,
        condition=Condition(
            type=ctype,
            value=_number(cond.get("value"), f"milestone {mid!r} condition value"),
            upgrade=str(upgrade) if upgrade is not None else None,
        ),
        reward=_number(info.get("reward"), f"milestone {mid!r} reward"),
        display_order=order,
        name=str(info.get("name", mid)),
    )


def _parse_boost(kind: str, info) -> BoostDef:
    if not isinstance(info, dict):
        raise CatalogError(f"boost {kind!r}: expected a mapping")
    multiplier = _number(info.get("multiplier"), f"boost {kind!r} multiplier")
    if multiplier <= 1:
        raise CatalogError(f"boost {kind!r}: multiplier must be > 1")
    duration = info.get("duration_ms")
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise CatalogError(f"boost {kind!r}: duration_ms must be a positive integer")
    return BoostDef(kind=kind, multiplier=multiplier, duration_ms=duration, name=str(info.get("name", kind)))


def _parse_idle_cap(info: dict, upgrades: dict) -> IdleCapPolicy:
    try:
        baseline = int(info["baseline_cap_seconds"])
        extended = int(info["extended_cap_seconds"])
        gate = str(info["extension_gate_upgrade"])
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"idle_cap: {e}") from e
    gate_level = info.get("extension_gate_level", 1)
    if baseline < 0 or extended < baseline:
        raise CatalogError("idle_cap: need 0 <= baseline_cap_seconds <= extended_cap_seconds")
    if gate not in upgrades:
        raise CatalogError(f"idle_cap: unknown gate upgrade {gate!r}")
    if isinstance(gate_level, bool) or not isinstance(gate_level, int) or gate_level < 1:
        raise CatalogError("idle_cap: extension_gate_level must be a positive integer")
    return IdleCapPolicy(
        baseline_cap_seconds=baseline,
        extended_cap_seconds=extended,
        extension_gate_upgrade=gate,
        extension_gate_level=gate_level,
    )


def _parse_prestige(info: dict) -> PrestigePolicy:
    if not isinstance(info, dict):
        raise CatalogError("prestige: expected a mapping")
    default = PrestigePolicy()
    base_cost = _number(info.get("base_cost", default.base_cost), "prestige.base_cost")
    growth = _number(info.get("cost_growth", default.cost_growth), "prestige.cost_growth")
    bonus = _number(info.get("bonus_per_level", default.bonus_per_level), "prestige.bonus_per_level")
    if base_cost <= 0:
        raise CatalogError("prestige.base_cost must be > 0")
    # A shrinking cost would let every later prestige come for free
    if growth < 1:
        raise CatalogError("prestige.cost_growth must be >= 1")
    if bonus < 0:
        raise CatalogError("prestige.bonus_per_level must be >= 0")
    return PrestigePolicy(base_cost=base_cost, cost_growth=growth, bonus_per_level=bonus)
