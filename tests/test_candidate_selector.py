import unittest

from candidate_selector import select_nearest
from schemas import Candidate, Coordinate


ORIGIN = Coordinate(latitude=0, longitude=0)


def _candidate(hydrant_id, lat, lon) -> Candidate:
    return Candidate(id=hydrant_id, coordinate=Coordinate(latitude=lat, longitude=lon))


class SelectNearestTests(unittest.TestCase):
    def test_empty_returns_none(self) -> None:
        self.assertIsNone(select_nearest(ORIGIN, []))

    def test_picks_closest(self) -> None:
        candidates = [_candidate(1, 0.001, 0), _candidate(2, 0.002, 0)]
        selection = select_nearest(ORIGIN, candidates)
        self.assertIsNotNone(selection)
        self.assertEqual(selection.candidate.id, 1)
        self.assertAlmostEqual(selection.distance_m, 111.19, places=1)
        self.assertAlmostEqual(selection.bearing_deg, 0.0, places=6)

    def test_order_does_not_change_winner(self) -> None:
        candidates = [_candidate("far", 0.003, 0), _candidate("near", 0, -0.0005), _candidate("mid", 0.002, 0)]
        self.assertEqual(select_nearest(ORIGIN, candidates).candidate.id, "near")

    def test_tie_keeps_first_in_input_order(self) -> None:
        candidates = [_candidate("east", 0, 0.001), _candidate("west", 0, -0.001)]
        self.assertEqual(select_nearest(ORIGIN, candidates).candidate.id, "east")
        self.assertEqual(select_nearest(ORIGIN, list(reversed(candidates))).candidate.id, "west")

    def test_measurement_carries_target_id(self) -> None:
        selection = select_nearest(ORIGIN, [_candidate(7, 0, 0.001)])
        measurement = selection.measurement()
        self.assertEqual(measurement.target_id, 7)
        self.assertAlmostEqual(measurement.bearing_deg, 90.0, places=6)
        self.assertEqual(measurement.distance_m, selection.distance_m)

    def test_accepts_generator(self) -> None:
        selection = select_nearest(ORIGIN, (c for c in [_candidate(1, 0.002, 0), _candidate(2, 0.001, 0)]))
        self.assertEqual(selection.candidate.id, 2)


if __name__ == "__main__":
    unittest.main()
