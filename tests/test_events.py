from analyze_events import summarize
from conftest import T0, player
from idlecafe.events import EventLogger, read_events
from idlecafe.outcomes import ReconcileDelta
from idlecafe.state import ActiveBoost


def test_in_memory_logger_keeps_latest():
    events = EventLogger(None)
    events.record("tap", player(coins=3.0), 3.0, T0)
    assert events.count == 1
    assert events.latest["op"] == "tap"
    assert events.latest["coins"] == 3.0


def test_values_are_serialized(tmp_path):
    log_file = tmp_path / "events.jsonl"
    events = EventLogger(log_file)
    events.record("idle", player(coins=10.0), ReconcileDelta(10.0, 10.0, 10), T0)
    events.record("boost", player(), ActiveBoost("speed", 2.0, T0 + 1), T0)

    rows = read_events(log_file)
    assert rows[0]["value"] == {"coins": 10.0, "produced": 10.0, "seconds": 10}
    assert rows[1]["value"] == {"kind": "speed", "multiplier": 2.0, "expires_at": T0 + 1}


def test_missing_log_reads_empty(tmp_path):
    assert read_events(tmp_path / "absent.jsonl") == []


def test_summarize():
    data = [
        {"op": "idle", "player_id": "a", "value": {"coins": 60}, "coins": 60, "total_produced": 60},
        {"op": "tap", "player_id": "a", "value": 5, "coins": 65, "total_produced": 65},
        {"op": "purchase", "player_id": "a", "value": 50, "coins": 15, "total_produced": 65},
        {"op": "tap", "player_id": "b", "value": 1, "coins": 1, "total_produced": 1},
    ]
    s = summarize(data)
    assert s["ops"] == {"idle": 1, "tap": 2, "purchase": 1}
    assert s["idle_coins"] == 60
    assert s["tap_coins"] == 6
    assert s["spent"] == 50
    assert s["players"]["a"]["coins"] == 15
