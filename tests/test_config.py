"""
tests/test_config.py — YAML Configuration Loading
==================================================
"""

from __future__ import annotations

import dataclasses

import pytest

from bittap.config import load_config

_YAML = """\
game_name: BitTap
game_tagline: Tap to earn
bot_prefix: "!"
operator_id: "1101048962"
"""


class TestLoadConfig:
    def test_required_and_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(_YAML, encoding="utf-8")

        cfg = load_config(path)

        assert cfg.game_name == "BitTap"
        assert cfg.operator_id == 1101048962
        assert cfg.api_port == 3000
        assert cfg.web_app_url is None
        assert cfg.leaderboard_size == 10

    def test_optional_keys(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(_YAML + "web_app_url: https://play.example.com\napi_port: 8080\n",
                        encoding="utf-8")

        cfg = load_config(path)

        assert cfg.web_app_url == "https://play.example.com"
        assert cfg.api_port == 8080

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("game_name: BitTap\n", encoding="utf-8")
        with pytest.raises(KeyError):
            load_config(path)

    def test_frozen(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(_YAML, encoding="utf-8")
        cfg = load_config(path)
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.operator_id = 1
