"""Settings loaded from configs/markets.yaml."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from cot_tracker.common.errors import ConfigError
from cot_tracker.common.paths import ProjectPaths
from cot_tracker.registry.instruments import InstrumentRegistry, registry_from_markets

DEFAULT_BASE_URL = "https://publicreporting.cftc.gov/resource"
DEFAULT_DATASET = "6dca-aqww"  # legacy futures only
DEFAULT_SCHEDULE = "0 10 * * *"
STORAGE_BACKENDS = ("xlsx", "csv", "memory")


@dataclass(frozen=True)
class SourceSettings:
    base_url: str = DEFAULT_BASE_URL
    dataset: str = DEFAULT_DATASET
    timeout_s: float = 30.0


@dataclass(frozen=True)
class PipelineSettings:
    request_delay_s: float = 1.0
    verify_delay_s: float = 0.5
    schedule: str = DEFAULT_SCHEDULE


@dataclass(frozen=True)
class StorageSettings:
    backend: str = "xlsx"
    path: Path = Path("data/series/cot_positions.xlsx")


@dataclass(frozen=True)
class Settings:
    source: SourceSettings
    pipeline: PipelineSettings
    storage: StorageSettings
    registry: InstrumentRegistry


def _section(cfg: dict, name: str) -> dict:
    sec = cfg.get(name) or {}
    if not isinstance(sec, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return sec


def parse_settings(cfg: dict, paths: ProjectPaths) -> Settings:
    if not isinstance(cfg, dict):
        raise ConfigError("markets config must be a mapping at top level")

    src = _section(cfg, "source")
    pipe = _section(cfg, "pipeline")
    sto = _section(cfg, "storage")

    markets = cfg.get("markets")
    if not markets:
        raise ConfigError("markets config has no 'markets' list")

    backend = str(sto.get("backend", "xlsx")).lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigError(f"Unknown storage backend {backend!r}; expected one of {STORAGE_BACKENDS}")

    default_path = "data/series" if backend == "csv" else "data/series/cot_positions.xlsx"
    try:
        source = SourceSettings(
            base_url=str(src.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
            dataset=str(src.get("dataset", DEFAULT_DATASET)),
            timeout_s=float(src.get("timeout_s", 30.0)),
        )
        pipeline = PipelineSettings(
            request_delay_s=float(pipe.get("request_delay_s", 1.0)),
            verify_delay_s=float(pipe.get("verify_delay_s", 0.5)),
            schedule=str(pipe.get("schedule", DEFAULT_SCHEDULE)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    storage = StorageSettings(backend=backend, path=paths.resolve(sto.get("path", default_path)))

    return Settings(
        source=source,
        pipeline=pipeline,
        storage=storage,
        registry=registry_from_markets(markets),
    )


def load_settings(paths: ProjectPaths) -> Settings:
    config_path = paths.markets_config
    if not config_path.exists():
        raise ConfigError(f"Markets config not found: {config_path}")
    cfg = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    return parse_settings(cfg, paths)
