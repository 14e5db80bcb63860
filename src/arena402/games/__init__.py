from __future__ import annotations

from .base import BaseGame, GameConfig, MatchBook, MoveResult, MoveValidation, Player, RoundRecord
from .chess_match import ChessMatch
from .coin_flip import CoinFlip
from .registry import GameRegistry, default_registry
from .rock_paper_scissors import RockPaperScissors
from .tic_tac_toe import TicTacToe

__all__ = [
    "BaseGame",
    "GameConfig",
    "MatchBook",
    "MoveResult",
    "MoveValidation",
    "Player",
    "RoundRecord",
    "RockPaperScissors",
    "CoinFlip",
    "TicTacToe",
    "ChessMatch",
    "GameRegistry",
    "default_registry",
]
