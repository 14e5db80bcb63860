import random
import unittest
from unittest.mock import patch

from arena402.errors import DecisionError
from arena402.games.chess_match import ChessMatch
from arena402.games.rock_paper_scissors import RockPaperScissors
from arena402.games.tic_tac_toe import TicTacToe, render
from arena402.llm_provider import LLMDecisionProvider
from arena402.prompting import PromptConfig, build_messages, render_custom_prompt
from arena402.random_provider import RandomDecisionProvider

PLAYERS = [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}]


class LLMDecisionProviderTests(unittest.TestCase):
    def test_decides_from_reply(self):
        game = RockPaperScissors("m1", PLAYERS)
        provider = LLMDecisionProvider(model="test-model", persona="defensive")
        with patch("arena402.llm_client.ask_for_move_conversation", return_value="Rock.") as ask:
            decision = provider.decide(game.public_state(), "a")
        self.assertEqual(decision.move, "rock")
        self.assertEqual(decision.raw, "Rock.")
        messages = ask.call_args.args[0]
        self.assertEqual(ask.call_args.kwargs["model"], "test-model")
        self.assertEqual(messages[0]["role"], "system")
        self.assertIn("DEFENSIVE STRATEGY", messages[1]["content"])
        self.assertIn("rock, paper, scissors", messages[1]["content"])

    def test_chess_reply_with_commentary(self):
        game = ChessMatch("m2", PLAYERS, rng=random.Random(0))
        white = game.current_turn()
        provider = LLMDecisionProvider(model="test-model", persona="aggressive")
        reply = "Move: e4\nCommentary: Claiming the centre."
        with patch("arena402.llm_client.ask_for_move_conversation", return_value=reply) as ask:
            decision = provider.decide(game.public_state(), white)
        self.assertEqual(decision.move, "e4")
        self.assertEqual(decision.commentary, "Claiming the centre.")
        prompt = ask.call_args.args[0][1]["content"]
        self.assertIn(game.board.fen(), prompt)
        self.assertIn("white", prompt)

    def test_unusable_reply_raises(self):
        game = TicTacToe("m3", PLAYERS)
        provider = LLMDecisionProvider(model="test-model")
        with patch("arena402.llm_client.ask_for_move_conversation", return_value="I pass"):
            with self.assertRaises(DecisionError) as ctx:
                provider.decide(game.public_state(), "a")
        self.assertEqual(ctx.exception.raw, "I pass")
        with patch("arena402.llm_client.ask_for_move_conversation", return_value=""):
            with self.assertRaises(DecisionError):
                provider.decide(game.public_state(), "a")


class PromptingTests(unittest.TestCase):
    def test_render_leaves_unknown_tokens(self):
        self.assertEqual(render_custom_prompt("{A} and {B}", {"A": "x"}), "x and {B}")

    def test_tic_tac_toe_prompt_shows_board_and_symbol(self):
        game = TicTacToe("m4", PLAYERS)
        game.submit_move("a", "5")
        content = build_messages(game.public_state(), "b")[1]["content"]
        self.assertIn("You play O", content)
        self.assertIn("4 | X | 6", content)

    def test_tic_tac_toe_prompt_board_matches_game_rendering(self):
        game = TicTacToe("m7", PLAYERS)
        game.submit_move("a", "1")
        game.submit_move("b", "9")
        state = game.public_state()
        content = build_messages(state, "a")[1]["content"]
        self.assertIn(render(state["board"]), content)
        self.assertIn("X | 2 | 3", content)

    def test_rps_prompt_lists_opponent_history(self):
        game = RockPaperScissors("m5", PLAYERS)
        game.submit_move("a", "paper")
        game.submit_move("b", "rock")
        content = build_messages(game.public_state(), "b", PromptConfig(persona="aggressive"))[1]["content"]
        self.assertIn("Opponent's previous moves: paper", content)
        self.assertIn("Round 1: Alice: paper vs Bob: rock - LOSS", content)
        self.assertIn("AGGRESSIVE STRATEGY", content)


class RandomProviderTests(unittest.TestCase):
    def test_picks_available_move(self):
        game = TicTacToe("m6", PLAYERS)
        decision = RandomDecisionProvider(random.Random(1)).decide(game.public_state(), "a")
        self.assertIn(decision.move, game.available_moves())

    def test_no_moves_raises(self):
        with self.assertRaises(DecisionError):
            RandomDecisionProvider().decide({"available_moves": []}, "a")


if __name__ == "__main__":
    unittest.main()
