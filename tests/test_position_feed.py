import unittest
from unittest.mock import Mock

from position_feed import PositionFeed
from schemas import Candidate, Coordinate
from tracking_session import TrackingSession


HYDRANT = Candidate(id="H-1", coordinate=Coordinate(latitude=0.001, longitude=0))


def _coord(lat: float, lon: float = 0.0) -> Coordinate:
    return Coordinate(latitude=lat, longitude=lon)


class PositionFeedTests(unittest.TestCase):
    def test_push_observes_and_notifies(self) -> None:
        updates = []
        feed = PositionFeed(TrackingSession(), Mock(return_value=[HYDRANT]), on_update=updates.append)

        self.assertTrue(feed.push(_coord(0)))

        self.assertEqual(len(updates), 1)
        self.assertEqual(updates[0].target_id, "H-1")
        self.assertEqual(feed.latest, updates[0])
        self.assertFalse(feed.busy)

    def test_fix_arriving_during_fetch_is_applied_afterwards(self) -> None:
        observed = []
        feed: PositionFeed

        def slow_fetch(origin: Coordinate) -> list[Candidate]:
            observed.append(origin)
            if len(observed) == 1:
                # Fixes keep arriving while the first search is outstanding.
                self.assertFalse(feed.push(_coord(0.0001)))
                self.assertFalse(feed.push(_coord(0.0002)))
                self.assertTrue(feed.busy)
            return [HYDRANT]

        updates = []
        feed = PositionFeed(TrackingSession(), slow_fetch, on_update=updates.append)

        self.assertTrue(feed.push(_coord(0)))

        # Only the first fix triggered a search; the latest queued fix was re-measured.
        self.assertEqual(observed, [_coord(0)])
        self.assertEqual(len(updates), 2)
        self.assertEqual(feed.coalesced_count, 1)
        self.assertAlmostEqual(updates[1].distance_m, updates[0].distance_m - 22.24, delta=0.1)
        self.assertFalse(feed.busy)

    def test_queued_fix_far_away_triggers_second_search(self) -> None:
        calls = []
        feed: PositionFeed

        def fetch(origin: Coordinate) -> list[Candidate]:
            calls.append(origin)
            if len(calls) == 1:
                feed.push(_coord(0.01))
            return [HYDRANT]

        feed = PositionFeed(TrackingSession(), fetch)
        feed.push(_coord(0))

        self.assertEqual(calls, [_coord(0), _coord(0.01)])

    def test_busy_flag_cleared_when_observe_raises(self) -> None:
        feed = PositionFeed(TrackingSession(), Mock(side_effect=RuntimeError("bug")))
        with self.assertRaises(RuntimeError):
            feed.push(_coord(0))
        self.assertFalse(feed.busy)

    def test_fix_queued_behind_failed_cycle_is_dropped(self) -> None:
        feed: PositionFeed
        calls = []

        def broken_fetch(origin: Coordinate) -> list[Candidate]:
            calls.append(origin)
            if len(calls) == 1:
                self.assertFalse(feed.push(_coord(0.0001)))
                raise RuntimeError("bug")
            return [HYDRANT]

        feed = PositionFeed(TrackingSession(), broken_fetch)
        with self.assertLogs("position_feed", level="WARNING"):
            with self.assertRaises(RuntimeError):
                feed.push(_coord(0))

        self.assertEqual(feed.dropped_count, 1)
        self.assertFalse(feed.busy)

        # The next fix starts a fresh cycle instead of replaying the stale one.
        self.assertTrue(feed.push(_coord(0.0002)))
        self.assertEqual(calls, [_coord(0), _coord(0.0002)])
        self.assertEqual(feed.coalesced_count, 0)

    def test_failed_fix_is_ignored(self) -> None:
        fetch = Mock(return_value=[HYDRANT])
        feed = PositionFeed(TrackingSession(), fetch)
        with self.assertLogs("position_feed", level="WARNING"):
            feed.report_error(TimeoutError("no fix"))
        fetch.assert_not_called()
        self.assertIsNone(feed.latest)


if __name__ == "__main__":
    unittest.main()
