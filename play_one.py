"""
Run one local match between two decision providers and print the result.

Examples:
  python play_one.py --game chess --p1 random --p2 random
  python play_one.py --game rock-paper-scissors --p1 llm:gpt-4o-mini --p2 llm:gpt-4o-mini --persona2 aggressive
"""
import argparse
import json
import logging

from arena402.arbiter import Arbiter, RegisteredPlayer
from arena402.config import SETTINGS
from arena402.games.registry import default_registry
from arena402.llm_provider import LLMDecisionProvider
from arena402.random_provider import RandomDecisionProvider

# base58-shaped placeholder wallets for local play
LOCAL_WALLETS = ("LocaL1111111111111111111111111111", "LocaL2222222222222222222222222222")


def make_provider(kind: str, persona: str | None):
    """'random' or 'llm:<model>'."""
    if kind == "random":
        return RandomDecisionProvider()
    if kind.startswith("llm:") and len(kind) > 4:
        return LLMDecisionProvider(model=kind[4:], persona=persona)
    raise ValueError(f"Unknown player kind '{kind}'. Use 'random' or 'llm:<model>'.")


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--game", default=SETTINGS.game_type, help="Game type id (e.g. chess, tic-tac-toe)")
    ap.add_argument("--p1", default="random", help="Player 1: 'random' or 'llm:<model>'")
    ap.add_argument("--p2", default="random", help="Player 2: 'random' or 'llm:<model>'")
    ap.add_argument("--persona1", choices=["defensive", "aggressive"], default="defensive")
    ap.add_argument("--persona2", choices=["defensive", "aggressive"], default="aggressive")
    ap.add_argument("--timeout", type=float, default=600.0, help="Seconds to wait for the match to finish")
    ap.add_argument("--events", action="store_true", help="Print every broadcast event")
    ap.add_argument("--log-level", default="INFO", help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("play_one")

    providers = {
        "agent-1": make_provider(args.p1, args.persona1),
        "agent-2": make_provider(args.p2, args.persona2),
    }

    def provider_for(player: RegisteredPlayer):
        return providers[player.agent_id]

    arbiter = Arbiter(default_registry(SETTINGS), game_type=args.game, provider_factory=provider_for)
    final = {}

    def on_event(event: str, payload: dict):
        if args.events:
            print(event, json.dumps(payload, indent=2))
        if event == "round_result":
            print(f"Round {payload['result']['round']}: {payload['result']['explanation']}")
        elif event == "match_over":
            final.update(payload)

    arbiter.bus.add_listener(on_event)
    arbiter.register({"agent_id": "agent-1", "agent_name": "Agent1", "agent_wallet": LOCAL_WALLETS[0]})
    result = arbiter.register({"agent_id": "agent-2", "agent_name": "Agent2", "agent_wallet": LOCAL_WALLETS[1]})
    log.info("Match %s started: %s vs %s", result.match_id, args.p1, args.p2)

    if not arbiter.wait_for_match(result.match_id, timeout=args.timeout):
        log.error("Match %s did not finish within %.0fs", result.match_id, args.timeout)
    else:
        state = final.get("state", {})
        winner = final.get("winner")
        print("Winner:", winner["agent_name"] if winner else "draw")
        print("Score:", {p["name"]: p["score"] for p in state.get("players", [])})
        if state.get("pgn"):
            print("PGN:\n", state["pgn"])
        print("Paid:", final.get("paid"), "tx:", final.get("tx"))
    arbiter.shutdown()
