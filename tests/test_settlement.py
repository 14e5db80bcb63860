import unittest
from unittest.mock import MagicMock

from arena402.errors import PayoutError
from arena402.settlement import DryRunSettlement, is_transient, payout_with_retry


class SettlementTests(unittest.TestCase):
    def test_transient_classification(self):
        self.assertTrue(is_transient(PayoutError("x", transient=True)))
        self.assertFalse(is_transient(PayoutError("network down", transient=False)))
        self.assertTrue(is_transient(RuntimeError("Blockhash not found")))
        self.assertTrue(is_transient(RuntimeError("HTTP 429 Too Many Requests")))
        self.assertTrue(is_transient(TimeoutError()))
        self.assertFalse(is_transient(ValueError("invalid recipient")))

    def test_retries_transient_then_succeeds(self):
        settlement = MagicMock()
        settlement.payout.side_effect = [RuntimeError("fetch failed"), RuntimeError("ETIMEDOUT"), "tx-ok"]
        sleep = MagicMock()
        outcome = payout_with_retry(settlement, "wallet", 1.5, attempts=4, base_delay_s=1.0, sleep=sleep)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.tx, "tx-ok")
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual(sleep.call_count, 2)
        first_delay, second_delay = (c.args[0] for c in sleep.call_args_list)
        self.assertTrue(0.8 <= first_delay <= 1.2)
        self.assertTrue(1.6 <= second_delay <= 2.4)

    def test_permanent_failure_stops_immediately(self):
        settlement = MagicMock()
        settlement.payout.side_effect = ValueError("invalid recipient")
        sleep = MagicMock()
        outcome = payout_with_retry(settlement, "wallet", 1.0, attempts=4, sleep=sleep)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.attempts, 1)
        self.assertEqual(outcome.reason, "invalid recipient")
        sleep.assert_not_called()

    def test_exhausted_retries_are_reported(self):
        settlement = MagicMock()
        settlement.payout.side_effect = PayoutError("503 service unavailable", transient=True)
        outcome = payout_with_retry(settlement, "wallet", 1.0, attempts=4, base_delay_s=0.0, sleep=MagicMock())
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.attempts, 4)
        self.assertEqual(settlement.payout.call_count, 4)

    def test_dry_run_records_payouts(self):
        settlement = DryRunSettlement()
        tx = settlement.payout("wallet", 0.0019)
        self.assertTrue(tx.startswith("dryrun-"))
        self.assertEqual(settlement.payouts, [("wallet", 0.0019, tx)])


if __name__ == "__main__":
    unittest.main()
