import unittest

from arena402.games.rock_paper_scissors import BEATS, RockPaperScissors, compare

PLAYERS = [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}]


class RockPaperScissorsTests(unittest.TestCase):
    def setUp(self):
        self.game = RockPaperScissors("m1", PLAYERS)

    def play_round(self, move_a, move_b):
        first = self.game.submit_move("a", move_a)
        self.assertTrue(first.accepted)
        self.assertFalse(first.round_completed)
        return self.game.submit_move("b", move_b)

    def test_dominance_is_consistent(self):
        for a in BEATS:
            for b in BEATS:
                self.assertEqual(compare(a, b), -compare(b, a))
                if a == b:
                    self.assertEqual(compare(a, b), 0)
        self.assertEqual(compare("rock", "scissors"), 1)
        self.assertEqual(compare("scissors", "paper"), 1)
        self.assertEqual(compare("paper", "rock"), 1)

    def test_round_resolves_when_both_moved(self):
        result = self.play_round("rock", "scissors")
        self.assertTrue(result.round_completed)
        self.assertFalse(result.match_over)
        state = self.game.public_state()
        self.assertEqual(state["round"], 1)
        self.assertEqual([p["score"] for p in state["players"]], [1, 0])
        self.assertEqual(state["history"][0]["winner_id"], "a")
        self.assertEqual(state["history"][0]["moves"], {"a": "rock", "b": "scissors"})

    def test_tie_increments_round_only(self):
        result = self.play_round("paper", "PAPER")
        self.assertTrue(result.round_completed)
        state = self.game.public_state()
        self.assertEqual(state["round"], 1)
        self.assertEqual([p["score"] for p in state["players"]], [0, 0])
        self.assertTrue(state["history"][0]["tie"])

    def test_double_submission_rejected(self):
        self.game.submit_move("a", "rock")
        again = self.game.submit_move("a", "paper")
        self.assertFalse(again.accepted)
        self.assertIn("already made your move", again.reason)
        self.assertEqual(self.game.pending.moves(), {"a": "rock"})

    def test_unknown_symbol_and_player(self):
        bad = self.game.submit_move("a", "lizard")
        self.assertFalse(bad.accepted)
        self.assertEqual(bad.reason, "Invalid move. Choose: rock, paper, scissors")
        ghost = self.game.submit_move("zed", "rock")
        self.assertEqual(ghost.reason, "Player not found")

    def test_pending_move_is_not_revealed(self):
        self.game.submit_move("a", "rock")
        state = self.game.public_state()
        self.assertEqual(state["submitted"], ["a"])
        self.assertEqual(state["awaiting"], ["b"])
        self.assertNotIn("rock", str(state["history"]))
        self.assertNotIn("pending", state)

    def test_first_to_five_ends_on_that_move(self):
        for _ in range(4):
            self.play_round("rock", "scissors")
        self.assertEqual(self.game.status, "active")
        final = self.play_round("rock", "scissors")
        self.assertTrue(final.match_over)
        self.assertEqual(self.game.winner_id, "a")
        self.assertEqual(self.game.book.round, 5)
        late = self.game.submit_move("a", "rock")
        self.assertFalse(late.accepted)
        self.assertEqual(late.reason, "Game not in progress")

    def test_round_cap_with_equal_scores_is_draw(self):
        # 4 wins each, then a tie in round 9
        for _ in range(4):
            self.play_round("rock", "scissors")
            self.play_round("scissors", "rock")
        result = self.play_round("paper", "paper")
        self.assertTrue(result.match_over)
        self.assertEqual(self.game.book.round, 9)
        self.assertIsNone(self.game.winner_id)
        self.assertEqual(self.game.status, "finished")


if __name__ == "__main__":
    unittest.main()
