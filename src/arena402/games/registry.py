"""
Game registry: maps a game-type id to its config and a match factory.

Built once at start-up (see default_registry) and handed to the Arbiter.
"""
from __future__ import annotations

import dataclasses
import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .base import BaseGame, GameConfig, Player
from .chess_match import CHESS, ChessMatch
from .coin_flip import COIN_FLIP, CoinFlip
from .rock_paper_scissors import ROCK_PAPER_SCISSORS, RockPaperScissors
from .tic_tac_toe import TIC_TAC_TOE, TicTacToe

log = logging.getLogger("registry")

# (match_id, players, config) -> game
GameFactory = Callable[[str, List[Player | dict], GameConfig], BaseGame]


@dataclass(frozen=True)
class GameEntry:
    config: GameConfig
    factory: GameFactory


class GameRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, GameEntry] = {}

    def register(self, config: GameConfig, factory: GameFactory) -> None:
        if config.id in self._entries:
            log.warning("Replacing registered game type %s", config.id)
        self._entries[config.id] = GameEntry(config, factory)

    def is_valid(self, game_type: str) -> bool:
        return game_type in self._entries

    def get_config(self, game_type: str) -> Optional[GameConfig]:
        entry = self._entries.get(game_type)
        return entry.config if entry else None

    def all_configs(self) -> List[GameConfig]:
        return [e.config for e in self._entries.values()]

    def create_game(self, game_type: str, match_id: str, players: Iterable[Player | dict]) -> Optional[BaseGame]:
        """Build a new match, or None when game_type is not registered."""
        entry = self._entries.get(game_type)
        if entry is None:
            log.warning("Unknown game type requested: %s", game_type)
            return None
        return entry.factory(match_id, list(players), entry.config)


def default_registry(settings=None, rng: Optional[random.Random] = None) -> GameRegistry:
    """Registry with the four built-in games, fees and chess ply cap taken from settings."""
    entry_fee = getattr(settings, "entry_fee", 0.0)
    move_price = getattr(settings, "move_price", 0.0)
    max_plies = getattr(settings, "chess_max_plies", None)

    def priced(config: GameConfig) -> GameConfig:
        return dataclasses.replace(config, entry_fee=entry_fee, move_price=move_price)

    registry = GameRegistry()
    registry.register(priced(ROCK_PAPER_SCISSORS), lambda mid, players, cfg: RockPaperScissors(mid, players, cfg))
    registry.register(priced(COIN_FLIP), lambda mid, players, cfg: CoinFlip(mid, players, cfg, rng=rng))
    registry.register(priced(TIC_TAC_TOE), lambda mid, players, cfg: TicTacToe(mid, players, cfg))
    registry.register(
        priced(CHESS),
        lambda mid, players, cfg: ChessMatch(mid, players, cfg, rng=rng, max_plies=max_plies),
    )
    return registry
