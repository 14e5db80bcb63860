"""
Chess: a single full game refereed by python-chess.

- Sides are assigned by shuffling the two players once (injectable RNG); players[0] is white.
- Moves are SAN (UCI accepted as a fallback); "resign" concedes.
- The match ends on checkmate (mover wins), stalemate or any draw condition,
  resignation, or the ply cap (draw). round becomes 1 only when it ends.
"""
from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional

import chess

from ..referee import BAD_FORMAT, Referee
from .base import BaseGame, GameConfig, MoveResult, MoveValidation, Player, TurnCursor

CHESS = GameConfig(
    id="chess",
    name="Chess",
    description=(
        "A full game of chess. Moves use standard algebraic notation (e.g. e4, Nf3, O-O, exd5, e8=Q). "
        "Checkmate wins; stalemate and draws by rule end the match without a winner."
    ),
    win_condition="Checkmate wins",
    max_rounds=1,
    turn_based=True,
)

RESIGN = "resign"
DEFAULT_MAX_PLIES = 400


class ChessMatch(BaseGame):
    CONFIG = CHESS

    def __init__(self, match_id: str, players: Iterable[dict | Player], config: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None, starting_fen: Optional[str] = None,
                 max_plies: Optional[int] = DEFAULT_MAX_PLIES):
        seated = list(players)
        (rng or random.Random()).shuffle(seated)
        super().__init__(match_id, seated, config)
        white, black = self.book.players
        self.colors: Dict[str, str] = {white.id: "white", black.id: "black"}
        self.referee = Referee(starting_fen=starting_fen, max_plies=max_plies)
        self.referee.set_headers(white=white.name, black=black.name)
        self.cursor = TurnCursor(self.book.player_ids)
        if self.referee.board.turn == chess.BLACK:
            self.cursor.advance()
        self.san_history: List[str] = []

    @property
    def board(self) -> chess.Board:
        return self.referee.board

    def color_of(self, player_id: str) -> Optional[chess.Color]:
        name = self.colors.get(player_id)
        if name is None:
            return None
        return chess.WHITE if name == "white" else chess.BLACK

    def current_turn(self) -> Optional[str]:
        return self.cursor.current if self.book.is_active else None

    def awaiting(self) -> List[str]:
        return [self.cursor.current] if self.book.is_active else []

    def available_moves(self) -> List[str]:
        return self.referee.legal_san()

    def validate_move(self, player_id: str, raw_move: str) -> MoveValidation:
        problem = self._precheck(player_id)
        if problem:
            return MoveValidation.reject(problem)
        if player_id != self.cursor.current:
            holder = self.book.player(self.cursor.current)
            return MoveValidation.reject(f"Not your turn. Current turn: {holder.name if holder else self.cursor.current}")
        text = str(raw_move or "").strip()
        if text.lower() == RESIGN:
            return MoveValidation.accept()
        mv, failure = self.referee.parse(text)
        if mv is not None:
            return MoveValidation.accept()
        if failure == BAD_FORMAT:
            return MoveValidation.reject(
                f"Invalid move format: {text}. Use standard algebraic notation (e.g., e4, Nf3, O-O)"
            )
        return MoveValidation.reject(f"Illegal move: {text}. Valid moves: {', '.join(self.available_moves())}")

    def submit_move(self, player_id: str, raw_move: str, commentary: Optional[str] = None) -> MoveResult:
        check = self.validate_move(player_id, raw_move)
        if not check.ok:
            return MoveResult.rejected(check.reason or "Invalid move")
        text = str(raw_move).strip()
        if text.lower() == RESIGN:
            color = self.color_of(player_id)
            self.referee.resign(color)
            opponent = self.book.opponent_of(player_id)
            mover = self.book.player(player_id)
            return self._end(opponent.id if opponent else None,
                             f"{mover.name if mover else player_id} resigned.")

        mv, _ = self.referee.parse(text)
        san = self.referee.apply(mv)
        self.san_history.append(san)
        self.log.debug("Match %s: %s played %s", self.match_id, player_id, san)

        outcome = self.referee.outcome()
        if outcome is not None:
            if outcome.winner is None:
                return self._end(None, f"Draw by {outcome.termination.name.lower().replace('_', ' ')}.")
            mover = self.book.player(player_id)
            return self._end(player_id, f"Checkmate! {mover.name if mover else player_id} wins with {san}.")
        if self.referee.ply_cap_reached():
            self.referee.set_result("1/2-1/2", "ply cap")
            return self._end(None, f"Draw: reached the {self.referee.max_plies}-ply limit.")

        self.cursor.advance()
        return MoveResult(accepted=True)

    def _end(self, winner_id: Optional[str], explanation: str) -> MoveResult:
        moves = {
            pid: " ".join(self.san_history[i::2]) for i, pid in enumerate(self._movers_in_order())
        }
        details = {
            "result": self.referee.status(),
            "termination": self.referee.termination,
            "plies": self.referee.plies,
        }
        self.book.resolve_round(moves, winner_id, explanation, details)
        self.book.check_round_limit()
        self.log.info("Match %s finished: %s", self.match_id, explanation)
        return MoveResult(accepted=True, round_completed=True, match_over=True)

    def _movers_in_order(self) -> List[str]:
        """Player ids in the order they moved from the starting position."""
        white, black = self.book.player_ids
        return [white, black] if self.referee.board.root().turn == chess.WHITE else [black, white]

    def instructions(self) -> str:
        side = "white" if self.board.turn == chess.WHITE else "black"
        return (
            f"{self.config.description} Position (FEN): {self.board.fen()}. {side.capitalize()} to move. "
            "Reply with one legal move in SAN."
        )

    def _extra_state(self) -> dict:
        board = self.board
        over = not self.book.is_active
        return {
            "fen": board.fen(),
            "pgn": self.referee.pgn(),
            "turn": "white" if board.turn == chess.WHITE else "black",
            "is_check": board.is_check(),
            "is_checkmate": board.is_checkmate(),
            "is_stalemate": board.is_stalemate(),
            "is_draw": over and self.book.winner_id is None,
            "move_history": list(self.san_history),
            "last_move": self.san_history[-1] if self.san_history else None,
            "colors": dict(self.colors),
            "termination": self.referee.termination if over else None,
        }
