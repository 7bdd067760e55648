from __future__ import annotations

from pathlib import Path

from gymclock.core.config import EngineConfig, load_config


def test_defaults_without_environment() -> None:
    config = load_config({})

    assert config == EngineConfig()
    assert config.default_prepare_time == 10
    assert config.start_interval_seconds == 120
    assert config.penalty_seconds == 60
    assert config.language == "sv"


def test_environment_overrides(tmp_path: Path) -> None:
    config = load_config(
        {
            "GYMCLOCK_LANGUAGE": "EN",
            "GYMCLOCK_DATA_DIR": str(tmp_path),
            "GYMCLOCK_PREPARE_TIME": "5",
            "GYMCLOCK_SKIP_PREP_ON_ADVANCE": "no",
            "GYMCLOCK_START_INTERVAL": "90",
            "GYMCLOCK_PENALTY_SECONDS": "30",
            "GYMCLOCK_MAX_CATCH_UP": "600",
        }
    )

    assert config.language == "en"
    assert config.race_results_path == tmp_path / "races.jsonl"
    assert config.default_prepare_time == 5
    assert config.skip_prep_on_advance is False
    assert config.start_interval_seconds == 90
    assert config.penalty_seconds == 30
    assert config.max_catch_up_sec == 600


def test_invalid_values_fall_back() -> None:
    config = load_config(
        {
            "GYMCLOCK_LANGUAGE": "klingon",
            "GYMCLOCK_PREPARE_TIME": "ten",
            "GYMCLOCK_PENALTY_SECONDS": "-20",
        }
    )

    assert config.language == "sv"
    assert config.default_prepare_time == 10
    assert config.penalty_seconds == 0
