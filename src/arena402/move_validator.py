"""
Move extraction from free-form LLM replies.

- Enumerated games (rock-paper-scissors, coin flip): the first allowed word in the reply.
- Tic-tac-toe: the first digit that names a free cell.
- Chess: the first token that is legal SAN (or UCI) in the position's FEN; returned as SAN.
A "Move:" line takes priority when present; a "Commentary:" line is returned alongside.
"""
from __future__ import annotations

import re
from typing import List, Optional, TypedDict

import chess

UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$", re.I)
CASTLE_ZERO = {"0-0": "O-O", "0-0-0": "O-O-O", "o-o": "O-O", "o-o-o": "O-O-O"}
MOVE_LINE_RE = re.compile(r"^\s*\**move\**\s*:\s*(.+)$", re.I | re.M)
COMMENTARY_RE = re.compile(r"^\s*\**commentary\**\s*:\s*(.+)$", re.I | re.M)
WORD_RE = re.compile(r"[a-z]+")


class ParsedReply(TypedDict, total=False):
    ok: bool
    move: str
    commentary: str
    reason: str


def _strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def _move_section(text: str) -> str:
    m = MOVE_LINE_RE.search(text)
    return m.group(1).strip() if m else text


def _commentary(text: str) -> Optional[str]:
    m = COMMENTARY_RE.search(text)
    return m.group(1).strip() if m else None


def _first_word(text: str, allowed: List[str]) -> Optional[str]:
    wanted = {a.lower() for a in allowed}
    for word in WORD_RE.findall(text.lower()):
        if word in wanted:
            return word
    return None


def _first_cell(text: str, allowed: List[str]) -> Optional[str]:
    for ch in text:
        if ch.isdigit() and ch in allowed:
            return ch
    return None


def _first_chess_move(text: str, fen: str) -> Optional[str]:
    board = chess.Board(fen=fen)
    for raw_token in text.replace("\n", " ").split():
        token = raw_token.strip(".,;:!?*`'\"()")
        token = re.sub(r"^\d+\.+", "", token)  # move numbers such as "12." or "12..."
        token = CASTLE_ZERO.get(token, token)
        if not token:
            continue
        try:
            mv = board.parse_san(token)
        except ValueError:
            mv = None
            if UCI_RE.match(token):
                candidate = chess.Move.from_uci(token.lower())
                if candidate in board.legal_moves:
                    mv = candidate
        if mv:
            return board.san(mv)
    return None


def parse_reply(game_type: str, raw: str, public_state: dict) -> ParsedReply:
    """Extract a legal move for game_type from raw; ok=False with a reason otherwise."""
    text = _strip_code_fence(raw or "")
    if not text:
        return {"ok": False, "reason": "empty_reply"}
    section = _move_section(text)
    allowed = list(public_state.get("available_moves", []))

    if game_type == "chess":
        fen = public_state.get("fen")
        if not fen:
            return {"ok": False, "reason": "missing_fen"}
        move = _first_chess_move(section, fen)
    elif game_type == "tic-tac-toe":
        move = _first_cell(section, allowed)
    else:
        move = _first_word(section, allowed)

    if move is None:
        return {"ok": False, "reason": "no_legal_move"}
    parsed: ParsedReply = {"ok": True, "move": move}
    commentary = _commentary(text)
    if commentary:
        parsed["commentary"] = commentary
    return parsed


__all__ = ["parse_reply", "ParsedReply"]
