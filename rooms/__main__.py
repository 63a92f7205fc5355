import argparse
import asyncio
import json
import logging
import random
from pathlib import Path
from typing import Optional

from duel.errors import DuelError, StaleWrite
from duel.game import legal_columns, replay, state_payload
from duel.models import MatchConfig, MatchResult, Phase
from duel.scoring import result_payload, score

from .session import MatchSession
from .store import MatchStore

LOGGER = logging.getLogger("duel_cli")


async def _bot_loop(session: MatchSession, rng: random.Random) -> Optional[MatchResult]:
    # Random legal columns; a lost race just means we look again.
    while True:
        state = await session.wait_for_turn()
        if session.finished:
            return session.result
        column = rng.choice(legal_columns(state, session.player))
        try:
            await session.place(column)
        except StaleWrite:
            continue


async def simulate(seed: Optional[int], config: MatchConfig, bot_seed: Optional[int]) -> dict:
    store = MatchStore(config)
    host = await MatchSession.create(store, seed=seed)
    guest = await MatchSession.join(store, host.code)
    host.start_polling()
    guest.start_polling()
    rng = random.Random(bot_seed)
    try:
        host_result, guest_result = await asyncio.gather(
            _bot_loop(host, random.Random(rng.random())),
            _bot_loop(guest, random.Random(rng.random())),
        )
    finally:
        await host.leave()
        await guest.leave()

    if host_result != guest_result:
        raise RuntimeError("Participants disagree on the match result")
    snapshot = await store.fetch(host.code)
    return {
        "room": host.code,
        "seed": snapshot["seed"],
        "moves": snapshot["moves"],
        "result": result_payload(host_result),
    }


def _print_result(payload: dict) -> None:
    result = payload["result"]
    for entry in result["columns"]:
        print(
            f"column {entry['column']}: P1 {entry['player1']['rank']:<16} "
            f"P2 {entry['player2']['rank']:<16} -> player {entry['winner']}"
        )
    print(f"player {result['overall_winner']} wins {result['p1_wins']}-{result['p2_wins']}")


def _load_moves(path: Path) -> tuple[Optional[int], list]:
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        return data.get("seed"), list(data.get("moves") or [])
    return None, list(data)


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Duel poker match tools")
    parser.add_argument("--verbose", action="store_true", help="Log every poll and move")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Play two random bots through a shared move log")
    sim.add_argument("--seed", type=int, default=None, help="Match seed (defaults to the clock)")
    sim.add_argument("--bot-seed", type=int, default=None)
    sim.add_argument("--poll-ms", type=int, default=20, help="Poll interval in milliseconds")
    sim.add_argument("--json", action="store_true", help="Print the full match record as JSON")

    rep = sub.add_parser("replay", help="Rebuild a match from a seed and a JSON move log")
    rep.add_argument("--seed", type=int, default=None, help="Overrides the seed stored in the file")
    rep.add_argument("--moves", type=Path, required=True, help="JSON list of moves or a match descriptor")
    rep.add_argument("--viewer", type=int, choices=(1, 2), default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "simulate":
        config = MatchConfig(poll_interval_ms=args.poll_ms)
        payload = asyncio.run(simulate(args.seed, config, args.bot_seed))
        if args.json:
            print(json.dumps(payload, indent=2))
        else:
            _print_result(payload)
        return

    stored_seed, moves = _load_moves(args.moves)
    seed = args.seed if args.seed is not None else stored_seed
    if seed is None:
        parser.error("a seed is required (--seed or a descriptor file with one)")
    try:
        state = replay(seed, moves)
    except DuelError as exc:
        parser.error(exc.msg)
    LOGGER.info("Replayed %s moves for seed %s", state.move_count, seed)
    output = {"state": state_payload(state, viewer=args.viewer)}
    if state.phase == Phase.REVEALING:
        output["result"] = result_payload(score(state.board))
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
