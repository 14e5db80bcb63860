import unittest

from arena402.stats import StatsTracker


class StatsTrackerTests(unittest.TestCase):
    def setUp(self):
        self.stats = StatsTracker()
        for agent in ("a", "b", "c"):
            self.stats.initialize_player(agent, agent.upper(), 0.001)

    def test_entry_fees_accumulate(self):
        self.stats.initialize_player("a", "A", 0.001)
        self.assertAlmostEqual(self.stats.get("a")["total_paid"], 0.002)

    def test_rounds_and_match_end(self):
        self.stats.record_round("a", "win")
        self.stats.record_round("a", "tie")
        self.stats.record_round("b", "lose")
        self.stats.record_match_end("a", "b", 0.0019)
        a, b = self.stats.get("a"), self.stats.get("b")
        self.assertEqual((a["rounds_won"], a["rounds_tied"], a["total_rounds"]), (1, 1, 2))
        self.assertEqual(a["win_rate"], 1.0)
        self.assertEqual(a["average_rounds_per_match"], 2.0)
        self.assertAlmostEqual(a["total_won"], 0.0019)
        self.assertEqual(b["matches_lost"], 1)
        self.assertEqual(b["win_rate"], 0.0)

    def test_unknown_round_result(self):
        with self.assertRaises(ValueError):
            self.stats.record_round("a", "forfeit")

    def test_leaderboard_order(self):
        self.stats.record_match_end("a", "b", 1.0)
        self.stats.record_match_end("c", "b", 1.0)
        self.stats.record_match_end("c", "a", 1.0)
        self.stats.record_draw(["a", "b"])
        board = [row["agent_id"] for row in self.stats.leaderboard()]
        # c: 2/2, a: 1/3, b: 0/3
        self.assertEqual(board, ["c", "a", "b"])
        self.assertIsNone(self.stats.get("zed"))


if __name__ == "__main__":
    unittest.main()
