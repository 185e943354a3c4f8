import unittest

from trailer_planner.models import LoadingMethod, TrailerCategory
from trailer_planner.trailer_catalog import (
    DEFAULT_TRAILER_ID,
    TRAILER_CATALOG,
    build_catalog,
    get_trailer,
    get_trailers_by_category,
    list_categories,
)


class TrailerCatalogTests(unittest.TestCase):
    def test_default_flatbed_matches_reference_data(self):
        flatbed = get_trailer(DEFAULT_TRAILER_ID)

        self.assertEqual(flatbed.category, TrailerCategory.FLATBED)
        self.assertEqual((flatbed.deck_length, flatbed.deck_width, flatbed.deck_height), (48.0, 8.5, 5.0))
        self.assertEqual(flatbed.max_cargo_weight, 48000.0)
        self.assertEqual(flatbed.max_legal_cargo_height, 8.5)
        self.assertEqual(flatbed.max_legal_cargo_width, 8.5)
        self.assertEqual(flatbed.deck_area, 408.0)

    def test_lookup_is_case_insensitive(self):
        self.assertIs(get_trailer(" RGN-3axle "), get_trailer("rgn-3axle"))
        self.assertIsNone(get_trailer("hovercraft"))

    def test_category_queries(self):
        self.assertEqual([spec.id for spec in get_trailers_by_category("rgn")], ["rgn", "rgn-3axle"])
        self.assertEqual(len(get_trailers_by_category(TrailerCategory.LOWBOY)), 2)
        self.assertEqual(get_trailers_by_category("step deck")[0].id, "step-deck")
        self.assertEqual(get_trailers_by_category("hovercraft"), [])
        self.assertEqual(get_trailers_by_category("DRY_VAN"), [])
        self.assertEqual(list_categories()[0], TrailerCategory.FLATBED)
        self.assertEqual(len(list_categories()), 7)

    def test_catalog_ids_are_unique(self):
        ids = [spec.id for spec in TRAILER_CATALOG]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(len(ids), 10)

    def test_build_catalog_skips_bad_rows(self):
        rows = [
            {"id": "a", "deck_length": 40, "deck_width": 8.5, "deck_height": 4, "loading_method": "ramp"},
            {"id": "a", "deck_length": 30, "deck_width": 8.5},
            {"name": "No id"},
            {"id": "b", "deck_length": 0, "deck_width": 8.5, "category": "mystery"},
        ]

        with self.assertLogs("trailer_planner.trailer_catalog", level="WARNING") as logs:
            catalog = build_catalog(rows)

        self.assertEqual([spec.id for spec in catalog], ["a", "b"])
        self.assertEqual(catalog[0].deck_length, 40.0)
        self.assertEqual(catalog[0].loading_method, LoadingMethod.RAMP)
        self.assertEqual(catalog[1].category, TrailerCategory.FLATBED)
        self.assertEqual(len(logs.output), 3)

    def test_empty_catalog(self):
        self.assertEqual(build_catalog([]), ())
        self.assertIsNone(get_trailer("flatbed-48", catalog=()))
        self.assertEqual(list_categories(catalog=()), [])
