"""Command line harness for playing a colony headlessly."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

from .data.shop import SHOP_ITEMS, get_item
from .runtime.config import ColonyConfig
from .runtime.player_id import get_player_id
from .runtime.rejections import Rejection
from .runtime.snapshot import JsonFileStore, SAVE_KEY
from .session import ColonySession
from .state import ColonyState

DEFAULT_SAVE = "warren_save.json"


def _load_overrides(path: str | None) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as fp:
        data = json.load(fp)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a JSON object")
    return data


def _render_status(state: ColonyState) -> str:
    counts = state.breed_counts()
    breeds = ", ".join(f"{breed.value}={count}" for breed, count in counts.items() if count)
    lines = [
        f"Day {state.day}",
        f"Rabbits {state.population_size}/{state.capacity} ({breeds or 'none'})",
        f"Coins {state.coins}  Food {state.food}  Water {state.water}  Houses {state.houses}",
        f"Food {state.food_tier.value}  Water {state.water_tier.value}",
    ]
    if state.owned_upgrades:
        lines.append("Upgrades " + ", ".join(sorted(state.owned_upgrades)))
    if state.broken_upgrades:
        lines.append("Broken " + ", ".join(sorted(state.broken_upgrades)))
    if state.epidemic.active:
        isolated = " (isolated)" if state.epidemic.isolation_chosen else ""
        lines.append(
            f"Rabbit fever: {len(state.epidemic.infected_ids)} infected, "
            f"{state.epidemic.days_remaining} days left{isolated}"
        )
    if state.pending_event is not None:
        lines.append(f"Event: {state.pending_event.name} - {state.pending_event.description}")
    lines.append(f"Achievements {len(state.unlocked_achievements)}")
    return "\n".join(lines)


def _reject(rejection: Rejection) -> int:
    print(f"Rejected ({rejection.reason.value}): {rejection}", file=sys.stderr)
    return 1


def _cmd_advance(session: ColonySession, days: int) -> int:
    for _ in range(max(1, days)):
        outcome = session.advance_day()
        parts = [f"Day {outcome.state.day}: +{outcome.coins_earned} coins"]
        if outcome.births:
            parts.append(f"{outcome.births} born")
        if outcome.event is not None:
            parts.append(f"event {outcome.event.name}")
        if outcome.broken_upgrade:
            parts.append(f"{outcome.broken_upgrade} broke")
        if outcome.epidemic_resolved:
            parts.append(f"fever over, {outcome.lost_to_epidemic} lost")
        for achievement_id in outcome.new_achievements:
            parts.append(f"achievement {achievement_id}")
        print(", ".join(parts))
        if session.is_game_over:
            record = session.end_run()
            print(f"Your colony died out on day {record.day}. A new colony has been started.")
            break
    return 0


def _cmd_shop(session: ColonySession) -> int:
    for item in SHOP_ITEMS:
        quote = session.quote(item.item_id)
        flag = " [broken]" if item.item_id in session.state.broken_upgrades else ""
        print(f"{item.item_id:20} {quote:>6}  {item.name}: {item.description}{flag}")
    return 0


def _cmd_history(session: ColonySession) -> int:
    if not session.run_history:
        print("No finished runs yet.")
        return 0
    for idx, record in enumerate(session.run_history, start=1):
        print(
            f"#{idx}: day {record.day}, {record.population} rabbits, {record.houses} houses, "
            f"{record.total_coins_earned} coins earned, {len(record.achievements)} achievements"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="warren", description="Run a rabbit colony one day at a time")
    parser.add_argument("--save", default=DEFAULT_SAVE, help="Save file (JSON; .gz for gzip)")
    parser.add_argument("--seed", type=int, default=0, help="Seed for a new colony's random source")
    parser.add_argument("--config", help="JSON file of colony config overrides")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("new", help="Archive the current colony and start a new one")
    sub.add_parser("status", help="Show the colony")
    advance = sub.add_parser("advance", help="Advance one or more days")
    advance.add_argument("--days", type=int, default=1)
    buy = sub.add_parser("buy", help="Buy a shop item")
    buy.add_argument("item")
    buy.add_argument("--qty", type=int, default=1)
    sub.add_parser("sell", help="Sell part of the colony on a market day")
    sub.add_parser("isolate", help="Isolate the infected rabbits")
    cure = sub.add_parser("cure", help="Pay to end rabbit fever now")
    cure.add_argument("--fraction", type=float, default=None, help="Share of coins to pay")
    sub.add_parser("shop", help="List shop items with today's prices")
    sub.add_parser("history", help="List finished runs")
    rename = sub.add_parser("rename", help="Set the player name shown on the leaderboard")
    rename.add_argument("name")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ColonyConfig.from_mapping(_load_overrides(args.config))
    except (OSError, ValueError, KeyError) as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2

    store = JsonFileStore(Path(args.save))
    session = ColonySession.load(store, seed=args.seed, config=config, save_key=SAVE_KEY)

    if args.command == "new":
        if session.state.day > 1 or session.run_history:
            session.end_run()
        else:
            session.save()
        print(_render_status(session.state))
        return 0
    if args.command == "status":
        print(_render_status(session.state))
        return 0
    if args.command == "advance":
        return _cmd_advance(session, args.days)
    if args.command == "buy":
        try:
            item = get_item(args.item)
        except KeyError:
            print(f"Unknown item: {args.item}", file=sys.stderr)
            return 2
        outcome = session.purchase(item, args.qty)
        if outcome.rejection is not None:
            return _reject(outcome.rejection)
        verb = "Repaired" if outcome.repaired else "Bought"
        print(f"{verb} {outcome.item_id} x{outcome.quantity} for {outcome.price} coins")
        return 0
    if args.command == "sell":
        sale = session.sell()
        if sale.rejection is not None:
            return _reject(sale.rejection)
        print(f"Sold {sale.sold} rabbits for {sale.coins} coins")
        return 0
    if args.command == "isolate":
        if not session.state.epidemic.active:
            print("There is no outbreak to isolate.", file=sys.stderr)
            return 1
        session.isolate()
        print(f"Isolated {len(session.state.epidemic.isolated_ids)} infected rabbits")
        return 0
    if args.command == "cure":
        if not session.state.epidemic.active:
            print("There is no outbreak to cure.", file=sys.stderr)
            return 1
        before = session.state.coins
        session.cure(args.fraction)
        print(f"Rabbit fever cured for {before - session.state.coins} coins")
        return 0
    if args.command == "shop":
        return _cmd_shop(session)
    if args.command == "history":
        return _cmd_history(session)
    if args.command == "rename":
        name = args.name.strip()
        if not name:
            print("Name must not be empty.", file=sys.stderr)
            return 2
        session.rename(name)
        print(f"Player {get_player_id(store)} is now {name}")
        return 0
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
