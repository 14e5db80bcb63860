"""
Prompt builders and config for LLM move requests using a modular template.

Callers supply system instructions and a template string with {PLACEHOLDER}
tokens that are substituted per move from the match's public state.
Each game type has a default template; a persona adds a strategy paragraph.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .games.tic_tac_toe import render

DEFAULT_SYSTEM = "You are a competitive AI agent playing a two-player game for a prize. Follow the reply format exactly."

PERSONAS: Dict[str, Dict[str, str]] = {
    "defensive": {
        "rock-paper-scissors": (
            "DEFENSIVE STRATEGY: study the opponent's pattern and counter their most frequent move. "
            "If there is no clear pattern, play rock."
        ),
        "coin-flip": "DEFENSIVE STRATEGY: stick to one call and only switch after two misses in a row.",
        "tic-tac-toe": (
            "DEFENSIVE STRATEGY: take a winning cell if you have one, otherwise block the opponent's "
            "two-in-a-row. Prefer the centre (5), then corners (1, 3, 7, 9)."
        ),
        "chess": "DEFENSIVE STRATEGY: keep the king safe, avoid loose pieces, trade when ahead.",
    },
    "aggressive": {
        "rock-paper-scissors": (
            "AGGRESSIVE STRATEGY: be unpredictable. Avoid repeating your last move. "
            "If there is no history, open with scissors."
        ),
        "coin-flip": "AGGRESSIVE STRATEGY: alternate your calls to stay unpredictable.",
        "tic-tac-toe": (
            "AGGRESSIVE STRATEGY: win now if you can, block only an immediate threat, "
            "and create forks with two ways to win."
        ),
        "chess": "AGGRESSIVE STRATEGY: look for checks, captures and threats first; attack the enemy king.",
    },
}

RPS_TEMPLATE = """Game: {GAME_NAME} ({WIN_CONDITION})
Round: {ROUND}/{MAX_ROUNDS}
Score: You {MY_SCORE} - {OPPONENT_SCORE} Opponent
Opponent's previous moves: {OPPONENT_MOVES}
Recent rounds:
{RECENT_ROUNDS}

{STRATEGY}

Respond with ONE WORD: {MOVES}."""

COIN_FLIP_TEMPLATE = """Game: {GAME_NAME} ({WIN_CONDITION})
Round: {ROUND}/{MAX_ROUNDS}
Score: You {MY_SCORE} - {OPPONENT_SCORE} Opponent
Previous flips: {COIN_RESULTS}

{STRATEGY}

Respond with ONE WORD: {MOVES}."""

TIC_TAC_TOE_TEMPLATE = """Game: {GAME_NAME} ({WIN_CONDITION}). You play {SYMBOL}.
Board {ROUND_NEXT} of {MAX_ROUNDS}. Score: You {MY_SCORE} - {OPPONENT_SCORE} Opponent

{BOARD}

Free positions: {MOVES}

{STRATEGY}

Respond with ONE NUMBER from the free positions."""

CHESS_TEMPLATE = """You are playing chess as {SIDE_TO_MOVE}.
Position (FEN): {FEN}
Move history (SAN): {SAN_HISTORY}
Legal moves: {MOVES}

{STRATEGY}

Reply in exactly this format:
Move: <your move in SAN>
Commentary: <one short sentence>"""

TEMPLATES: Dict[str, str] = {
    "rock-paper-scissors": RPS_TEMPLATE,
    "coin-flip": COIN_FLIP_TEMPLATE,
    "tic-tac-toe": TIC_TAC_TOE_TEMPLATE,
    "chess": CHESS_TEMPLATE,
}


@dataclass
class PromptConfig:
    """Configuration for shaping move prompts using a custom template."""

    system_instructions: str = DEFAULT_SYSTEM
    template: Optional[str] = None  # None: use the game type's default
    persona: Optional[str] = None  # "defensive" | "aggressive"
    recent_rounds: int = 3


def render_custom_prompt(template: str, values: Dict[str, str]) -> str:
    """Replace known placeholders in the template. Unknown tokens are left intact."""
    rendered = template or ""
    for key, val in values.items():
        rendered = rendered.replace(f"{{{key}}}", val)
    return rendered


def _recent_rounds(state: dict, player_id: str, limit: int) -> str:
    names = {p["id"]: p["name"] for p in state.get("players", [])}
    lines = []
    for rec in state.get("history", [])[-limit:]:
        moves = " vs ".join(f"{names.get(pid, pid)}: {mv}" for pid, mv in rec.get("moves", {}).items())
        if rec.get("winner_id") is None:
            result = "TIE"
        else:
            result = "WIN" if rec["winner_id"] == player_id else "LOSS"
        lines.append(f"Round {rec['round']}: {moves} - {result}")
    return "\n".join(lines) or "(game just started)"


def placeholder_values(state: dict, player_id: str, cfg: PromptConfig) -> Dict[str, str]:
    """Values for every placeholder the default templates use."""
    players = state.get("players", [])
    me = next((p for p in players if p["id"] == player_id), {})
    other = next((p for p in players if p["id"] != player_id), {})
    history = state.get("history", [])
    game_type = state.get("game_type", "")
    strategy = PERSONAS.get(cfg.persona or "", {}).get(game_type, "Play to win.")
    return {
        "GAME_NAME": str(state.get("game_name", game_type)),
        "WIN_CONDITION": str(state.get("win_condition", "")),
        "ROUND": str(state.get("round", 0)),
        "ROUND_NEXT": str(state.get("round", 0) + 1),
        "MAX_ROUNDS": str(state.get("max_rounds", "")),
        "MY_SCORE": str(me.get("score", 0)),
        "OPPONENT_SCORE": str(other.get("score", 0)),
        "OPPONENT_MOVES": ", ".join(r["moves"][other["id"]] for r in history
                                    if other.get("id") in r.get("moves", {})) or "none yet",
        "RECENT_ROUNDS": _recent_rounds(state, player_id, cfg.recent_rounds),
        "COIN_RESULTS": ", ".join(r.get("details", {}).get("coin_result", "?") for r in history) or "none yet",
        "MOVES": ", ".join(state.get("available_moves", [])),
        "SYMBOL": str(state.get("symbols", {}).get(player_id, "")),
        "BOARD": render(state["board"]) if "board" in state else "",
        "FEN": str(state.get("fen", "")),
        "SAN_HISTORY": " ".join(state.get("move_history", [])) or "(none)",
        "SIDE_TO_MOVE": str(state.get("colors", {}).get(player_id, state.get("turn", ""))),
        "STRATEGY": strategy,
    }


def build_messages(state: dict, player_id: str, cfg: Optional[PromptConfig] = None) -> List[Dict[str, str]]:
    """Chat messages (system + user) asking player_id for its next move."""
    cfg = cfg or PromptConfig()
    template = cfg.template or TEMPLATES.get(state.get("game_type", ""), "{MOVES}")
    user = render_custom_prompt(template, placeholder_values(state, player_id, cfg))
    return [
        {"role": "system", "content": cfg.system_instructions},
        {"role": "user", "content": user},
    ]
