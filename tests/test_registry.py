import dataclasses
import unittest

from arena402.config import SETTINGS
from arena402.games.chess_match import ChessMatch
from arena402.games.registry import GameRegistry, default_registry
from arena402.games.rock_paper_scissors import ROCK_PAPER_SCISSORS, RockPaperScissors

PLAYERS = [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}]


class RegistryTests(unittest.TestCase):
    def test_default_registry_builds_all_games(self):
        settings = dataclasses.replace(SETTINGS, entry_fee=0.5, move_price=0.01, chess_max_plies=10)
        registry = default_registry(settings)
        self.assertEqual(
            sorted(c.id for c in registry.all_configs()),
            ["chess", "coin-flip", "rock-paper-scissors", "tic-tac-toe"],
        )
        for config in registry.all_configs():
            self.assertEqual(config.entry_fee, 0.5)
            self.assertEqual(config.move_price, 0.01)
            game = registry.create_game(config.id, "m-" + config.id, PLAYERS)
            self.assertEqual(game.public_state()["game_type"], config.id)
        chess_game = registry.create_game("chess", "m", PLAYERS)
        self.assertIsInstance(chess_game, ChessMatch)
        self.assertEqual(chess_game.referee.max_plies, 10)

    def test_configs_carry_rules(self):
        registry = default_registry(SETTINGS)
        self.assertEqual(registry.get_config("rock-paper-scissors").max_rounds, 9)
        self.assertEqual(registry.get_config("coin-flip").max_rounds, 5)
        self.assertTrue(registry.get_config("tic-tac-toe").turn_based)
        self.assertEqual(registry.get_config("chess").max_rounds, 1)

    def test_unknown_type_returns_none(self):
        registry = GameRegistry()
        registry.register(ROCK_PAPER_SCISSORS, lambda mid, players, cfg: RockPaperScissors(mid, players, cfg))
        self.assertTrue(registry.is_valid("rock-paper-scissors"))
        self.assertFalse(registry.is_valid("checkers"))
        self.assertIsNone(registry.create_game("checkers", "m", PLAYERS))
        self.assertIsNone(registry.get_config("checkers"))


if __name__ == "__main__":
    unittest.main()
