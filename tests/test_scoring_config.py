"""Tests for scoring configuration defaults and JSON overrides."""

import json

import pytest

from core.exceptions import ConfigurationError
from services.scoring_config import ScoringConfig, load_scoring_config
from services.scoring_models import ScoringStrategy, TrainingLoad


def write_json(tmp_path, payload, name="scoring.json"):
    path = tmp_path / name
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


def test_defaults_cover_every_strategy_and_load():
    config = load_scoring_config()
    for strategy in ScoringStrategy:
        weights = config.strategy(strategy).macro_weights
        assert weights.calories + weights.protein + weights.carbs + weights.fat == pytest.approx(1.0)
    for load in TrainingLoad:
        weight = config.load_weight(load)
        assert weight.nutrition + weight.training == pytest.approx(1.0)
    assert config.load_weight("rest").training == 0


def test_override_file_is_deep_merged(tmp_path):
    path = write_json(tmp_path, {
        "modifiers": {"bonus_cap": 8},
        "strategies": {"general": {"overconsumption_penalty": 7}},
    })
    config = load_scoring_config(path)
    assert config.modifiers.bonus_cap == 8
    assert config.modifiers.hydration_bonus == 2
    assert config.strategy(ScoringStrategy.GENERAL).overconsumption_penalty == 7
    assert config.strategy(ScoringStrategy.GENERAL).overconsumption_threshold == pytest.approx(1.1)
    assert config.strategy(ScoringStrategy.RUNNER_FOCUSED).overconsumption_penalty == 10


@pytest.mark.parametrize("payload", [
    "{not json",
    "[1, 2, 3]",
    {"training": {"completion_weight": -1}},
    {"strategies": {"general": {"overconsumption_threshold": 0.9}}},
])
def test_invalid_override_raises_configuration_error(tmp_path, payload):
    path = write_json(tmp_path, payload)
    with pytest.raises(ConfigurationError) as exc_info:
        load_scoring_config(path)
    assert exc_info.value.details == {"config_key": "SCORING_CONFIG_PATH"}


def test_missing_override_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_scoring_config(str(tmp_path / "missing.json"))


def test_unknown_strategy_raises():
    config = ScoringConfig()
    with pytest.raises(ConfigurationError):
        config.strategy("carb-loading")
