import json
import unittest

from arena402.notifications import EventBus, format_sse


class EventBusTests(unittest.TestCase):
    def test_sse_framing(self):
        frame = format_sse("round_result", {"round": 1})
        self.assertEqual(frame, 'event: round_result\ndata: {"round": 1}\n\n')

    def test_publish_reaches_every_subscriber(self):
        bus = EventBus()
        first, second = bus.subscribe(), bus.subscribe()
        self.assertEqual(bus.publish("player_joined", {"position": 1}), 2)
        for sub in (first, second):
            frame = sub.get(timeout=0.1)
            self.assertIn("event: player_joined", frame)

    def test_full_subscriber_is_dropped_without_affecting_others(self):
        bus = EventBus(queue_size=1)
        slow, healthy = bus.subscribe(), bus.subscribe()
        bus.publish("a", {})
        healthy.get(timeout=0.1)
        delivered = bus.publish("b", {})
        self.assertEqual(delivered, 1)
        self.assertTrue(slow.closed)
        self.assertEqual(bus.subscriber_count, 1)
        self.assertIn("event: b", healthy.get(timeout=0.1))

    def test_listeners_get_a_copy_and_failures_are_removed(self):
        bus = EventBus()
        seen = []

        def broken(event, payload):
            raise RuntimeError("boom")

        def mutating(event, payload):
            payload["x"] = "changed"
            seen.append(payload)

        bus.add_listener(broken)
        bus.add_listener(mutating)
        original = {"x": 1}
        bus.publish("e", original)
        bus.publish("e", original)
        self.assertEqual(original, {"x": 1})
        self.assertEqual(len(seen), 2)

    def test_stream_yields_frames_and_unsubscribes_on_close(self):
        bus = EventBus()
        sub = bus.subscribe()
        bus.publish("match_started", {"match_id": "m1"})
        sub.close()
        frames = list(sub.stream(keepalive_s=0.05))
        self.assertEqual(frames[0], ": connected\n\n")
        self.assertEqual(len(frames), 2)
        data = frames[1].split("data: ", 1)[1]
        self.assertEqual(json.loads(data), {"match_id": "m1"})
        self.assertEqual(bus.subscriber_count, 0)


if __name__ == "__main__":
    unittest.main()
