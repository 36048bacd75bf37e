"""
analyze_events.py — Post-run analysis of the Idle Cafe event log.
Reads events_log.jsonl and reports:
  1. Operation mix (idle credits, purchases, taps, claims, boosts)
  2. Idle vs tap share of total production
  3. Per-player final balances
"""
import sys

from idlecafe.events import read_events


def summarize(data):
    ops: dict[str, int] = {}
    idle_coins = 0.0
    tap_coins = 0.0
    spent = 0.0
    players: dict[str, dict] = {}
    for e in data:
        ops[e["op"]] = ops.get(e["op"], 0) + 1
        if e["op"] == "idle":
            idle_coins += (e.get("value") or {}).get("coins", 0)
        elif e["op"] == "tap":
            tap_coins += e.get("value") or 0
        elif e["op"] == "purchase":
            spent += e.get("value") or 0
        # Entries are appended in order, so the last one per player wins
        players[e["player_id"]] = e
    return {
        "ops": ops,
        "idle_coins": idle_coins,
        "tap_coins": tap_coins,
        "spent": spent,
        "players": players,
    }


def analyze(data):
    if not data:
        print("No events found.")
        return

    s = summarize(data)
    print(f"=== IDLE CAFE EVENTS ({len(data)} entries, {len(s['players'])} players) ===\n")

    print("1. OPERATION MIX")
    for op, n in sorted(s["ops"].items(), key=lambda kv: -kv[1]):
        print(f"   {op:10s} {n:6d}")
    print()

    produced = s["idle_coins"] + s["tap_coins"]
    print("2. PRODUCTION SOURCES")
    if produced > 0:
        print(f"   Idle: {s['idle_coins']:.0f} ({100 * s['idle_coins'] / produced:.1f}%)")
        print(f"   Taps: {s['tap_coins']:.0f} ({100 * s['tap_coins'] / produced:.1f}%)")
    print(f"   Spent on upgrades: {s['spent']:.0f}")
    print()

    print("3. FINAL BALANCES (top 20 by lifetime production)")
    ranked = sorted(s["players"].values(), key=lambda e: -e["total_produced"])
    for e in ranked[:20]:
        print(f"   {e['player_id']:24s} coins={e['coins']:>12.0f} produced={e['total_produced']:>12.0f}")


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "events_log.jsonl"
    analyze(read_events(path))
