import random
import unittest

from arena402.games.chess_match import ChessMatch

PLAYERS = [{"id": "p1", "name": "One"}, {"id": "p2", "name": "Two"}]
STALEMATE_SETUP = "k7/8/1K6/2Q5/8/8/8/8 w - - 0 1"


def sides(game):
    colors = game.public_state()["colors"]
    white = next(pid for pid, c in colors.items() if c == "white")
    black = next(pid for pid, c in colors.items() if c == "black")
    return white, black


class ChessMatchTests(unittest.TestCase):
    def setUp(self):
        self.game = ChessMatch("m1", PLAYERS, rng=random.Random(3))
        self.white, self.black = sides(self.game)

    def test_sides_follow_player_order(self):
        self.assertEqual(self.game.book.player_ids[0], self.white)
        self.assertEqual(self.game.current_turn(), self.white)
        self.assertEqual(set(self.game.colors), {"p1", "p2"})

    def test_fools_mate(self):
        for pid, san in ((self.white, "f3"), (self.black, "e5"), (self.white, "g4")):
            result = self.game.submit_move(pid, san)
            self.assertTrue(result.accepted, result.reason)
            self.assertFalse(result.round_completed)
            self.assertEqual(self.game.book.round, 0)
        final = self.game.submit_move(self.black, "Qh4#")
        self.assertTrue(final.match_over)
        state = self.game.public_state()
        self.assertEqual(state["winner_id"], self.black)
        self.assertEqual(state["round"], 1)
        self.assertTrue(state["is_checkmate"])
        self.assertEqual(state["termination"], "checkmate")
        self.assertEqual(state["move_history"], ["f3", "e5", "g4", "Qh4#"])
        self.assertIn("0-1", state["pgn"])
        late = self.game.submit_move(self.white, "e4")
        self.assertFalse(late.accepted)
        self.assertEqual(late.reason, "Game not in progress")

    def test_uci_fallback(self):
        result = self.game.submit_move(self.white, "e2e4")
        self.assertTrue(result.accepted)
        self.assertEqual(self.game.public_state()["last_move"], "e4")

    def test_rejections_leave_board_untouched(self):
        fen = self.game.board.fen()
        wrong_turn = self.game.submit_move(self.black, "e5")
        self.assertEqual(wrong_turn.reason, "Not your turn. Current turn: %s" % self.game.book.player(self.white).name)
        illegal = self.game.submit_move(self.white, "e5")
        self.assertTrue(illegal.reason.startswith("Illegal move: e5. Valid moves: "))
        self.assertIn("Nf3", illegal.reason)
        garbage = self.game.submit_move(self.white, "zz9")
        self.assertEqual(
            garbage.reason,
            "Invalid move format: zz9. Use standard algebraic notation (e.g., e4, Nf3, O-O)",
        )
        self.assertEqual(self.game.board.fen(), fen)

    def test_stalemate_is_draw(self):
        game = ChessMatch("m2", PLAYERS, rng=random.Random(1), starting_fen=STALEMATE_SETUP)
        white, _ = sides(game)
        result = game.submit_move(white, "Qc7")
        self.assertTrue(result.match_over)
        state = game.public_state()
        self.assertIsNone(state["winner_id"])
        self.assertTrue(state["is_stalemate"])
        self.assertTrue(state["is_draw"])
        self.assertEqual(state["round"], 1)

    def test_resignation(self):
        result = self.game.submit_move(self.white, "resign")
        self.assertTrue(result.match_over)
        self.assertEqual(self.game.winner_id, self.black)
        self.assertEqual(self.game.public_state()["termination"], "resignation")

    def test_ply_cap_is_draw(self):
        game = ChessMatch("m3", PLAYERS, rng=random.Random(5), max_plies=2)
        white, black = sides(game)
        game.submit_move(white, "Nf3")
        result = game.submit_move(black, "Nf6")
        self.assertTrue(result.match_over)
        self.assertIsNone(game.winner_id)
        self.assertEqual(game.public_state()["termination"], "ply cap")


if __name__ == "__main__":
    unittest.main()
