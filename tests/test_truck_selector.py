import unittest

from trailer_planner.fit_analyzer import analyze_fit, determine_permits
from trailer_planner.models import CargoEnvelope, PermitType
from trailer_planner.trailer_catalog import TRAILER_CATALOG, get_trailer
from trailer_planner.truck_selector import (
    calculate_score,
    can_transport_legally,
    get_best_truck,
    get_legal_trucks,
    select_trucks,
)


def _cargo(length=20.0, width=8.0, height=8.0, weight=10000.0, description="Crate"):
    return CargoEnvelope(length=length, width=width, height=height, weight=weight, description=description)


def _score(cargo, trailer_id):
    trailer = get_trailer(trailer_id)
    fit = analyze_fit(cargo, trailer)
    return calculate_score(cargo, trailer, fit, determine_permits(cargo, fit))


class SelectTrucksTests(unittest.TestCase):
    def _assert_ranking_invariants(self, recommendations):
        self.assertEqual(len(recommendations), len(TRAILER_CATALOG))
        scores = [rec.score for rec in recommendations]
        self.assertTrue(all(0 <= score <= 100 for score in scores))
        self.assertEqual(scores, sorted(scores, reverse=True))
        best = [rec for rec in recommendations if rec.is_best_choice]
        self.assertEqual(len(best), 1)
        self.assertIs(best[0], recommendations[0])
        self.assertEqual(best[0].score, max(scores))

    def test_ranking_invariants_hold_for_varied_cargo(self):
        cargos = [
            _cargo(),
            _cargo(width=10.0),
            _cargo(height=12.0, weight=70000.0),
            _cargo(length=0, width=0, height=0, weight=0),
            _cargo(length=130.0, width=20.0, height=20.0, weight=500000.0),
        ]
        for cargo in cargos:
            with self.subTest(cargo=cargo):
                self._assert_ranking_invariants(select_trucks(cargo))

    def test_overweight_single_item_still_gets_a_full_ranking(self):
        cargo = _cargo(length=10.0, width=8.0, height=8.0, weight=60000.0, description="Transformer")

        recommendations = select_trucks(cargo)

        self._assert_ranking_invariants(recommendations)
        self.assertFalse(any(rec.fit.fits for rec in recommendations))
        self.assertTrue(recommendations[0].is_best_choice)

    def test_ties_keep_catalog_order(self):
        recommendations = select_trucks(_cargo(height=4.0))

        catalog_index = {trailer.id: idx for idx, trailer in enumerate(TRAILER_CATALOG)}
        for current, following in zip(recommendations, recommendations[1:]):
            if current.score == following.score:
                self.assertLess(catalog_index[current.trailer.id], catalog_index[following.trailer.id])

    def test_empty_catalog_returns_empty_list(self):
        self.assertEqual(select_trucks(_cargo(), catalog=[]), [])
        self.assertIsNone(get_best_truck(_cargo(), catalog=[]))
        self.assertFalse(can_transport_legally(_cargo(), catalog=[]))

    def test_tall_cargo_prefers_low_deck_trailers(self):
        cargo = _cargo(height=11.0, weight=30000.0, description="Transformer")

        best = get_best_truck(cargo)

        # rgn, lowboy and landoll all score 100; rgn comes first in the catalog.
        self.assertEqual(best.trailer.id, "rgn")
        self.assertTrue(best.fit.is_legal)
        self.assertLess(_score(cargo, "flatbed-48"), best.score)

    def test_superload_adds_warning(self):
        recommendations = select_trucks(_cargo(width=17.0))

        for rec in recommendations:
            self.assertTrue(any(permit.type == PermitType.SUPERLOAD for permit in rec.permits))
            self.assertTrue(any(warning.startswith("SUPERLOAD") for warning in rec.warnings))
            self.assertTrue(any("escort" in warning for warning in rec.warnings))

    def test_legal_queries_filter_the_ranked_list(self):
        cargo = _cargo()

        legal = get_legal_trucks(cargo)

        self.assertTrue(legal)
        self.assertTrue(all(rec.fit.is_legal for rec in legal))
        self.assertTrue(can_transport_legally(cargo))
        self.assertFalse(can_transport_legally(_cargo(width=10.0)))


class CalculateScoreTests(unittest.TestCase):
    def test_tight_height_fit_gets_bonus_capped_at_100(self):
        self.assertEqual(_score(_cargo(), "flatbed-48"), 100)

    def test_overkill_height_clearance_is_penalized(self):
        self.assertEqual(_score(_cargo(height=4.0), "lowboy"), 90)

    def test_drive_on_trailer_bonus_for_tracked_equipment(self):
        plain = _score(_cargo(height=6.0, description="Steel crate"), "step-deck")
        tracked = _score(_cargo(height=6.0, description="CAT 320 Excavator"), "step-deck")

        self.assertEqual(plain, 90)
        self.assertEqual(tracked, 100)

    def test_no_tracked_bonus_on_crane_loaded_trailer(self):
        plain = _score(_cargo(height=4.0, description="Steel crate"), "flatbed-48")
        tracked = _score(_cargo(height=4.0, description="Dozer"), "flatbed-48")

        self.assertEqual(plain, tracked)

    def test_wide_cargo_score_combines_penalties(self):
        # -50 no fit, -7.5 width, -5 permit, +5 tight height
        self.assertEqual(_score(_cargo(width=10.0), "flatbed-48"), 43)
