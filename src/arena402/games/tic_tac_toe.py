"""
Tic-tac-toe: turn-based, best of 3 boards (first to 2 board wins).

- Positions are 1-9, left to right, top to bottom. players[0] is X, players[1] is O.
- A completed line wins the board; a full board with no line is a tied board.
- Between boards the grid is cleared and X moves first again.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .base import BaseGame, GameConfig, MoveResult, MoveValidation, Player, TurnCursor

TIC_TAC_TOE = GameConfig(
    id="tic-tac-toe",
    name="Tic Tac Toe",
    description=(
        "Tic-tac-toe on a 3x3 grid. Players alternate placing X and O; "
        "three in a row (horizontal, vertical or diagonal) wins the board."
    ),
    win_condition="Best of 3 (first to 2)",
    max_rounds=3,
    turn_based=True,
)

# zero-indexed cells
WIN_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

SYMBOLS = ("X", "O")


def find_line(board: List[Optional[str]], symbol: str) -> Optional[List[int]]:
    for line in WIN_LINES:
        if all(board[i] == symbol for i in line):
            return list(line)
    return None


def render(board: List[Optional[str]]) -> str:
    """Text grid with free cells shown as their 1-9 position."""
    cells = [board[i] or str(i + 1) for i in range(9)]
    rows = [" | ".join(cells[r * 3:r * 3 + 3]) for r in range(3)]
    return "\n---------\n".join(rows)


def parse_position(raw_move) -> Optional[int]:
    text = str(raw_move or "").strip()
    if not text.isdigit():
        return None
    pos = int(text)
    return pos if 1 <= pos <= 9 else None


class TicTacToe(BaseGame):
    CONFIG = TIC_TAC_TOE

    def __init__(self, match_id: str, players: Iterable[dict | Player], config: Optional[GameConfig] = None):
        super().__init__(match_id, players, config)
        self.cursor = TurnCursor(self.book.player_ids)
        self.board: List[Optional[str]] = [None] * 9
        self.symbols: Dict[str, str] = {p.id: SYMBOLS[i] for i, p in enumerate(self.book.players)}
        self._board_moves: Dict[str, List[int]] = {pid: [] for pid in self.book.player_ids}
        self.winning_line: Optional[List[int]] = None

    def current_turn(self) -> Optional[str]:
        return self.cursor.current if self.book.is_active else None

    def awaiting(self) -> List[str]:
        return [self.cursor.current] if self.book.is_active else []

    def available_moves(self) -> List[str]:
        return [str(i + 1) for i in range(9) if self.board[i] is None]

    def _check_cell(self, player_id: str, raw_move: str) -> Tuple[Optional[int], Optional[str]]:
        """(position, None) for a playable cell, else (None, reason)."""
        problem = self._precheck(player_id)
        if problem:
            return None, problem
        if player_id != self.cursor.current:
            holder = self.book.player(self.cursor.current)
            return None, f"Not your turn. Current turn: {holder.name if holder else self.cursor.current}"
        pos = parse_position(raw_move)
        if pos is None:
            return None, "Invalid position. Choose 1-9"
        if self.board[pos - 1] is not None:
            return None, f"Position {pos} is already taken"
        return pos, None

    def validate_move(self, player_id: str, raw_move: str) -> MoveValidation:
        pos, reason = self._check_cell(player_id, raw_move)
        if pos is None:
            return MoveValidation.reject(reason or "Invalid move")
        return MoveValidation.accept()

    def submit_move(self, player_id: str, raw_move: str, commentary: Optional[str] = None) -> MoveResult:
        pos, reason = self._check_cell(player_id, raw_move)
        if pos is None:
            return MoveResult.rejected(reason or "Invalid move")
        symbol = self.symbols[player_id]
        self.board[pos - 1] = symbol
        self._board_moves[player_id].append(pos)
        self.log.debug("Match %s: %s placed %s at %d", self.match_id, player_id, symbol, pos)

        line = find_line(self.board, symbol)
        if line is not None:
            mover = self.book.player(player_id)
            name = mover.name if mover else player_id
            return self._close_board(player_id, f"{name} ({symbol}) completed a line!", line)
        if all(cell is not None for cell in self.board):
            return self._close_board(None, "Board full with no line. Tie!", None)

        self.cursor.advance()
        return MoveResult(accepted=True)

    def _close_board(self, winner_id: Optional[str], explanation: str, line: Optional[List[int]]) -> MoveResult:
        moves = {pid: ",".join(str(p) for p in positions) for pid, positions in self._board_moves.items()}
        details = {"board": list(self.board), "winning_line": line}
        record = self.book.resolve_round(moves, winner_id, explanation, details)
        self.winning_line = line
        self.log.info("Match %s board %d: %s", self.match_id, record.round, explanation)
        over = self.book.check_round_limit()
        self.board = [None] * 9
        self._board_moves = {pid: [] for pid in self.book.player_ids}
        if over:
            self.log.info("Match %s finished; winner=%s", self.match_id, self.book.winner_id)
        else:
            self.cursor.reset()
        return MoveResult(accepted=True, round_completed=True, match_over=over)

    def instructions(self) -> str:
        return (
            f"{self.config.description} {self.config.win_condition}. "
            "Reply with the number (1-9) of a free cell:\n"
            f"{render(self.board)}"
        )

    def _extra_state(self) -> dict:
        return {
            "board": list(self.board),
            "symbols": dict(self.symbols),
            "winning_line": self.winning_line,
        }
