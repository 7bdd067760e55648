"""Engine configuration with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal, Mapping


logger = logging.getLogger(__name__)

Language = Literal["sv", "en"]

ENV_PREFIX = "GYMCLOCK_"


def _default_data_dir() -> Path:
    return Path.home() / ".gymclock"


@dataclass(frozen=True)
class EngineConfig:
    default_prepare_time: int = 10
    skip_prep_on_advance: bool = True
    start_interval_seconds: int = 120
    penalty_seconds: int = 60
    language: Language = "sv"
    poll_interval_sec: float = 0.2
    max_catch_up_sec: int | None = None
    data_dir: Path = _default_data_dir()

    @property
    def race_results_path(self) -> Path:
        return self.data_dir / "races.jsonl"


def _env_int(env: Mapping[str, str], name: str, fallback: int | None) -> int | None:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return max(0, int(raw.strip()))
    except ValueError:
        logger.warning("Ignoring %s%s=%r (not an integer)", ENV_PREFIX, name, raw)
        return fallback


def _env_bool(env: Mapping[str, str], name: str, fallback: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return fallback
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_config(env: Mapping[str, str] | None = None) -> EngineConfig:
    source = os.environ if env is None else env
    config = EngineConfig()

    language = source.get(ENV_PREFIX + "LANGUAGE", config.language).strip().lower()
    if language not in ("sv", "en"):
        logger.warning("Unsupported language %r; using %s", language, config.language)
        language = config.language

    data_dir_raw = source.get(ENV_PREFIX + "DATA_DIR")
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else config.data_dir

    return replace(
        config,
        default_prepare_time=_env_int(source, "PREPARE_TIME", config.default_prepare_time)
        or config.default_prepare_time,
        skip_prep_on_advance=_env_bool(
            source, "SKIP_PREP_ON_ADVANCE", config.skip_prep_on_advance
        ),
        start_interval_seconds=_env_int(
            source, "START_INTERVAL", config.start_interval_seconds
        )
        or 0,
        penalty_seconds=_env_int(source, "PENALTY_SECONDS", config.penalty_seconds) or 0,
        language=language,  # type: ignore[arg-type]
        max_catch_up_sec=_env_int(source, "MAX_CATCH_UP", config.max_catch_up_sec),
        data_dir=data_dir,
    )
