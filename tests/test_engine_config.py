import json
import unittest

from trailer_planner.engine_config import (
    CONFIG_PATH_ENV_KEY,
    DEFAULT_ENGINE_CONFIG,
    load_engine_config,
    load_engine_config_from_env,
)
from trailer_planner.trailer_catalog import TRAILER_ROWS, build_catalog, get_trailer


class LoadEngineConfigTests(unittest.TestCase):
    def test_overrides_only_given_keys(self):
        config = load_engine_config({"legal": {"width": 10, "height": "14"}, "caution_pct": 85})

        self.assertEqual(config.legal.width, 10.0)
        self.assertEqual(config.legal.height, 14.0)
        self.assertEqual(config.legal.gross_weight, DEFAULT_ENGINE_CONFIG.legal.gross_weight)
        self.assertEqual(config.axle_limits, DEFAULT_ENGINE_CONFIG.axle_limits)
        self.assertEqual(config.caution_pct, 85.0)

    def test_bad_values_fall_back_to_defaults(self):
        config = load_engine_config(
            {
                "legal": {"width": "wide", "height": -3},
                "caution_pct": 250,
                "split_area_efficiency": 1.5,
                "superload": "nope",
            }
        )

        self.assertEqual(config.legal.width, 8.5)
        self.assertEqual(config.legal.height, 0.0)
        self.assertEqual(config.caution_pct, 100.0)
        self.assertEqual(config.split_area_efficiency, 0.8)
        self.assertEqual(config.superload, DEFAULT_ENGINE_CONFIG.superload)

    def test_non_mapping_returns_base(self):
        self.assertIs(load_engine_config(None), DEFAULT_ENGINE_CONFIG)
        self.assertIs(load_engine_config(["legal"]), DEFAULT_ENGINE_CONFIG)

    def test_catalog_legal_height_follows_config(self):
        config = load_engine_config({"legal": {"height": 14.5}})

        catalog = build_catalog(TRAILER_ROWS, limits=config.legal)

        self.assertEqual(get_trailer("flatbed-48", catalog=catalog).max_legal_cargo_height, 9.5)
        self.assertEqual(get_trailer("flatbed-48").max_legal_cargo_height, 8.5)


def test_env_without_path_uses_defaults():
    assert load_engine_config_from_env({}) is DEFAULT_ENGINE_CONFIG


def test_env_path_is_loaded(tmp_path):
    path = tmp_path / "engine.json"
    path.write_text(json.dumps({"axle_limits": {"steer": 20000}}), encoding="utf-8")

    config = load_engine_config_from_env({CONFIG_PATH_ENV_KEY: str(path)})

    assert config.axle_limits.steer == 20000.0
    assert config.axle_limits.drive == DEFAULT_ENGINE_CONFIG.axle_limits.drive


def test_env_missing_or_broken_file_logs_and_uses_defaults(tmp_path, caplog):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with caplog.at_level("WARNING", logger="trailer_planner.engine_config"):
        missing_config = load_engine_config_from_env({CONFIG_PATH_ENV_KEY: str(tmp_path / "nope.json")})
        broken_config = load_engine_config_from_env({CONFIG_PATH_ENV_KEY: str(broken)})

    assert missing_config is DEFAULT_ENGINE_CONFIG
    assert broken_config is DEFAULT_ENGINE_CONFIG
    assert "Engine config not found" in caplog.text
    assert "Failed to load engine config" in caplog.text
