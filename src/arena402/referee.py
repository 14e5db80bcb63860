"""
Referee: owns the python-chess Board for one chess match.

- Parses SAN (UCI accepted as a fallback) against the current position.
- Applies moves, records resignation and ply-cap terminations.
- Exposes outcome()/status() for the current result and pgn() for export.
"""
from __future__ import annotations

import datetime
import re
from typing import Optional, Tuple

import chess
import chess.pgn

UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$", re.I)
CASTLE_ZERO = {"0-0": "O-O", "0-0-0": "O-O-O", "o-o": "O-O", "o-o-o": "O-O-O"}

# parse() failure kinds
ILLEGAL = "illegal"
BAD_FORMAT = "format"


class Referee:
    """Chess referee around a python-chess Board with PGN export."""

    def __init__(self, starting_fen: str | None = None, max_plies: int | None = None):
        self.board = chess.Board(fen=starting_fen) if starting_fen else chess.Board()
        self.max_plies = max_plies
        self._headers: dict[str, str] = {}
        self._result_override: Optional[str] = None
        self._termination: Optional[str] = None

    # ---------------- Headers -----------------
    def set_headers(self, white: str, black: str, event: str = "Arena402 Match", round_: str = "1",
                    date: Optional[str] = None) -> None:
        date = date or datetime.date.today().strftime("%Y.%m.%d")
        self._headers.update({
            "Event": event,
            "Site": "arena402",
            "Date": date,
            "Round": round_,
            "White": white,
            "Black": black,
        })

    # ---------------- Move Parsing / Application -----------------
    def parse(self, text: str) -> Tuple[Optional[chess.Move], Optional[str]]:
        """Return (move, None) for a legal move, else (None, ILLEGAL | BAD_FORMAT)."""
        token = CASTLE_ZERO.get(text.strip(), text.strip())
        if not token:
            return None, BAD_FORMAT
        try:
            mv = self.board.parse_san(token)
        except (chess.IllegalMoveError, chess.AmbiguousMoveError):
            return None, ILLEGAL
        except chess.InvalidMoveError:
            mv = None
        if mv is not None:
            # parse_san maps "--" and friends to the null move
            return (mv, None) if mv else (None, ILLEGAL)
        if not UCI_RE.match(token):
            return None, BAD_FORMAT
        mv = chess.Move.from_uci(token.lower())
        if mv not in self.board.legal_moves:
            return None, ILLEGAL
        return mv, None

    def legal_san(self) -> list[str]:
        return [self.board.san(mv) for mv in self.board.legal_moves]

    def apply(self, mv: chess.Move) -> str:
        san = self.board.san(mv)
        self.board.push(mv)
        return san

    @property
    def plies(self) -> int:
        return len(self.board.move_stack)

    def ply_cap_reached(self) -> bool:
        return bool(self.max_plies) and self.plies >= self.max_plies

    # ---------------- Result Management -----------------
    def set_result(self, result: str, termination: str) -> None:
        self._result_override = result
        self._termination = termination

    def resign(self, color: chess.Color) -> None:
        self.set_result("0-1" if color == chess.WHITE else "1-0", "resignation")

    def outcome(self) -> Optional[chess.Outcome]:
        # claim_draw covers threefold repetition and the fifty-move rule
        return self.board.outcome(claim_draw=True)

    @property
    def termination(self) -> Optional[str]:
        if self._termination:
            return self._termination
        out = self.outcome()
        return out.termination.name.lower() if out else None

    def status(self) -> str:
        if self._result_override:
            return self._result_override
        out = self.outcome()
        return out.result() if out else "*"

    def pgn(self) -> str:
        game = chess.pgn.Game()
        for k, v in self._headers.items():
            game.headers[k] = v
        game.headers["Result"] = self.status()
        start = self.board.root()
        if start.fen() != chess.STARTING_FEN:
            game.setup(start)
        node = game
        for mv in self.board.move_stack:
            node = node.add_variation(mv)
        if self._termination:
            game.comment = f"Termination: {self._termination}"
        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=bool(self._termination))
        return game.accept(exporter)
