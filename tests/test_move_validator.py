import unittest

import chess

from arena402.move_validator import parse_reply

RPS_STATE = {"game_type": "rock-paper-scissors", "available_moves": ["rock", "paper", "scissors"]}
TTT_STATE = {"game_type": "tic-tac-toe", "available_moves": ["2", "5", "9"]}
CHESS_STATE = {"game_type": "chess", "fen": chess.STARTING_FEN, "available_moves": []}


class ParseReplyTests(unittest.TestCase):
    def test_enumerated_word(self):
        self.assertEqual(parse_reply("rock-paper-scissors", "PAPER!", RPS_STATE)["move"], "paper")
        reply = parse_reply("rock-paper-scissors", "I think they'll go rock, so scissors... no, paper", RPS_STATE)
        self.assertEqual(reply["move"], "rock")
        self.assertFalse(parse_reply("rock-paper-scissors", "lizard", RPS_STATE)["ok"])

    def test_move_line_takes_priority(self):
        raw = "Thinking about rock.\nMove: scissors\nCommentary: Cutting through."
        reply = parse_reply("rock-paper-scissors", raw, RPS_STATE)
        self.assertEqual(reply["move"], "scissors")
        self.assertEqual(reply["commentary"], "Cutting through.")

    def test_first_free_cell(self):
        self.assertEqual(parse_reply("tic-tac-toe", "Position 1 is taken, I'll play 5", TTT_STATE)["move"], "5")
        self.assertFalse(parse_reply("tic-tac-toe", "center please", TTT_STATE)["ok"])

    def test_chess_san_and_uci(self):
        raw = "Move: Nf3\nCommentary: Developing the knight."
        reply = parse_reply("chess", raw, CHESS_STATE)
        self.assertEqual(reply["move"], "Nf3")
        self.assertEqual(reply["commentary"], "Developing the knight.")
        self.assertEqual(parse_reply("chess", "```\ne2e4\n```", CHESS_STATE)["move"], "e4")
        self.assertEqual(parse_reply("chess", "1. d4", CHESS_STATE)["move"], "d4")

    def test_chess_without_legal_token(self):
        reply = parse_reply("chess", "Move: Ke2", CHESS_STATE)
        self.assertFalse(reply["ok"])
        self.assertEqual(reply["reason"], "no_legal_move")
        self.assertEqual(parse_reply("chess", "e4", {"game_type": "chess"})["reason"], "missing_fen")

    def test_empty_reply(self):
        self.assertEqual(parse_reply("coin-flip", "   ", {"available_moves": ["heads", "tails"]})["reason"], "empty_reply")


if __name__ == "__main__":
    unittest.main()
