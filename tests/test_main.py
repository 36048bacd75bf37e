import inspect

import pytest
import yaml
from fastapi.testclient import TestClient

from conftest import T0, make_config, player
from idlecafe import main
from idlecafe.catalog import CatalogError
from idlecafe.engine import GameEngine
from idlecafe.store import JsonFileStore, MemoryStore


@pytest.fixture
def client(config, clock):
    main.engine = main.build_engine(config, clock=clock)
    return TestClient(main.app)


def test_state_creates_player(client):
    r = client.get("/game/state", params={"player_id": "p1"})
    assert r.status_code == 200
    body = r.json()
    assert body["state"]["player_id"] == "p1"
    assert body["state"]["coins"] == 0
    assert body["rate"] == 1.0


def test_missing_player_id(client):
    r = client.get("/game/state")
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_input"


def test_collect_reports_idle_earnings(client, clock):
    client.get("/game/state", params={"player_id": "p1"})
    clock.advance(15)
    r = client.post("/game/collect", json={"player_id": "p1"})
    assert r.status_code == 200
    assert r.json()["idle_earnings"]["coins"] == 15


def test_upgrade_rejections(client, clock):
    r = client.post("/game/upgrade", json={"player_id": "p1", "upgrade": "beans"})
    assert r.status_code == 400
    assert r.json()["error"] == "insufficient_funds"

    clock.advance(100)
    r = client.post("/game/upgrade", json={"player_id": "p1", "upgrade": "beans"})
    assert r.status_code == 200
    assert r.json()["cost"] == 100
    assert r.json()["state"]["upgrade_levels"]["beans"] == 1

    r = client.post("/game/upgrade", json={"player_id": "p1", "upgrade": "grinder"})
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_input"


def test_tap(client):
    r = client.post("/game/tap", json={"player_id": "p1", "taps": 5})
    assert r.status_code == 200
    assert r.json()["gained"] == 5

    r = client.post("/game/tap", json={"player_id": "p1", "taps": 5000})
    assert r.status_code == 400


def test_milestone_flow(client, clock):
    client.get("/game/state", params={"player_id": "p1"})
    clock.advance(100)
    r = client.get("/milestones", params={"player_id": "p1"})
    assert r.status_code == 200
    assert r.json()["unclaimed"] == ["produced_100"]

    r = client.post("/milestones/claim", json={"player_id": "p1", "milestone": "produced_100"})
    assert r.status_code == 200
    assert r.json()["reward"] == 5
    assert r.json()["state"]["reward_tokens"] == 5

    r = client.post("/milestones/claim", json={"player_id": "p1", "milestone": "produced_100"})
    assert r.status_code == 400
    assert r.json()["error"] == "already_claimed"

    r = client.post("/milestones/claim", json={"player_id": "p1", "milestone": "first_barista"})
    assert r.json()["error"] == "milestone_not_earned"


def test_boost(client, clock):
    r = client.post("/boost", json={"player_id": "p1", "boost": "rush"})
    assert r.status_code == 200
    assert r.json()["boost"]["expires_at"] == clock() + 600_000
    assert r.json()["message"] == "3x boost active for 10 min"

    r = client.post("/boost", json={"player_id": "p1", "boost": "instant"})
    assert r.status_code == 400


def test_stale_state_is_409(config, clock):
    class AlwaysStale(MemoryStore):
        def store_if_unchanged(self, player_id, expected_version, state):
            return False

    main.engine = GameEngine(main.build_engine(config).catalog, store=AlwaysStale(), clock=clock)
    r = TestClient(main.app).post("/game/tap", json={"player_id": "p1"})
    assert r.status_code == 409
    assert r.json()["error"] == "stale_state"


def test_catalog_and_stats(client):
    client.post("/game/tap", json={"player_id": "p1", "taps": 1})
    cat = client.get("/catalog").json()
    assert [u["kind"] for u in cat["upgrades"]] == ["beans", "espresso", "barista", "locations"]
    stats = client.get("/stats").json()
    assert stats["events_logged"] == 1
    assert stats["latest_event"]["op"] == "tap"


def test_startup_loads_config(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(make_config()))
    monkeypatch.setattr(main, "CONFIG_PATH", path)
    with TestClient(main.app) as c:
        r = c.get("/game/state", params={"player_id": "boot"})
        assert r.status_code == 200
        assert r.json()["state"]["last_reconciled_at"] > T0


def test_startup_fails_on_broken_catalog(tmp_path, monkeypatch):
    cfg = make_config()
    cfg["upgrades"]["beans"]["costs"] = []
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(cfg))
    monkeypatch.setattr(main, "CONFIG_PATH", path)
    with pytest.raises(CatalogError):
        with TestClient(main.app):
            pass


def test_prestige_route(client, clock):
    r = client.post("/game/prestige", json={"player_id": "p1"})
    assert r.status_code == 400
    assert r.json()["error"] == "prestige_not_ready"

    main.engine.store.store("p1", player(total_produced=1000.0, last_reconciled_at=clock()))
    r = client.post("/game/prestige", json={"player_id": "p1"})
    assert r.status_code == 200
    body = r.json()
    assert body["state"]["prestige_level"] == 1
    assert body["prestige"]["next_cost"] == 2000
    assert body["message"] == "Prestige 1: +10% production"

    snap = client.get("/game/state", params={"player_id": "p1"}).json()
    assert snap["prestige"]["multiplier"] == pytest.approx(1.1)


def test_corrupt_record_is_500_naming_the_file(config, clock, tmp_path):
    engine = main.build_engine(config, clock=clock)
    store = JsonFileStore(tmp_path, engine.catalog.upgrades.keys())
    main.engine = GameEngine(engine.catalog, store=store, clock=clock)
    c = TestClient(main.app)
    assert c.post("/game/tap", json={"player_id": "p1"}).status_code == 200

    path = next(tmp_path.iterdir())
    path.write_text("{not json")
    r = c.get("/game/state", params={"player_id": "p1"})
    assert r.status_code == 500
    assert r.json()["error"] == "store_error"
    assert path.name in r.json()["detail"]


def test_handlers_run_in_threadpool():
    # Blocking store I/O must stay off the event loop
    for handler in (main.get_state, main.collect, main.upgrade, main.tap, main.prestige,
                    main.milestones, main.claim_milestone, main.boost):
        assert not inspect.iscoroutinefunction(handler)
