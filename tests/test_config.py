"""Tests for visualizer configuration."""

import json

import pytest

from spectrascope.config import PROFILES, VisualizerConfig, load_config


class TestVisualizerConfig:
    def test_defaults_are_valid(self):
        config = VisualizerConfig().validate()

        assert config.fft_size == 1024
        assert config.mode == "bars"
        assert config.theme == "blue"
        assert config.sensitivity is None
        assert config.volume == pytest.approx(0.7)

    def test_from_dict_ignores_unknown_keys(self):
        config = VisualizerConfig.from_dict({"theme": "pink", "segments": 12})

        assert config.theme == "pink"
        assert not hasattr(config, "segments")

    def test_to_dict_round_trip(self):
        config = VisualizerConfig(mode="wave", width=320)
        assert VisualizerConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "overrides",
        [
            {"fft_size": 1000},
            {"theme": "teal"},
            {"mode": "spiral"},
            {"fps": 0},
            {"pixel_ratio": 0.0},
            {"volume": 1.5},
            {"min_decibels": -30.0, "max_decibels": -100.0},
            {"width": -1},
        ],
    )
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            VisualizerConfig(**overrides).validate()

    def test_profiles(self):
        assert set(PROFILES) == {"low", "medium", "high"}
        low = VisualizerConfig.from_dict(PROFILES["low"])
        assert low.fps == 30
        assert not low.glow_enabled


class TestLoadConfig:
    def test_load_json(self, tmp_path):
        path = tmp_path / "visualizer.json"
        path.write_text(json.dumps({"mode": "circular", "fft_size": 2048}))

        config = load_config(path)

        assert config.mode == "circular"
        assert config.fft_size == 2048

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "visualizer.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_config(tmp_path / "nope.json")
