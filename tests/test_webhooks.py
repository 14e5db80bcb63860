import json
import unittest

import httpx

from arena402.webhooks import WebhookNotifier, task_payload


class WebhookNotifierTests(unittest.TestCase):
    def make_notifier(self, handler):
        notifier = WebhookNotifier(client=httpx.Client(transport=httpx.MockTransport(handler)))
        self.addCleanup(notifier.close)
        return notifier

    def test_posts_task_to_agent(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        payload = task_payload("match_1", "a", {"instructions": "Choose rock, paper or scissors", "round": 0})
        self.assertTrue(self.make_notifier(handler).send_task("https://agent.example/hooks/", payload))
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].method, "POST")
        self.assertEqual(str(seen[0].url), "https://agent.example/hooks/task")
        body = json.loads(seen[0].content)
        self.assertEqual(body["type"], "game_move")
        self.assertEqual(body["player_id"], "a")
        self.assertEqual(body["instruction"], "Choose rock, paper or scissors")
        self.assertEqual(body["game_state"]["round"], 0)

    def test_error_status_is_reported(self):
        notifier = self.make_notifier(lambda request: httpx.Response(503))
        with self.assertLogs("webhooks", "WARNING"):
            self.assertFalse(notifier.send_task("https://agent.example", task_payload("m", "a", {})))

    def test_unreachable_agent_is_reported(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = self.make_notifier(handler)
        with self.assertLogs("webhooks", "WARNING"):
            self.assertFalse(notifier.send_task("http://127.0.0.1:9", task_payload("m", "a", {})))

    def test_default_instruction(self):
        self.assertEqual(task_payload("m", "a", {})["instruction"], "Make your move")


if __name__ == "__main__":
    unittest.main()
