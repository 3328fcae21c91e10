"""TOML-based client configuration.

Loads ~/.cloudenv/defaults.toml (global) and cloudenv.toml (project),
merges them, and resolves the merged tables into :class:`Settings`.

Example ``cloudenv.toml``::

    [leonardo]
    url = "https://leonardo.example.org"
    timeout = 30

    [polling]
    interval = 15

    [pricing]
    path = "prices.toml"
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cloudenv.constants import (
    DEFAULT_LEONARDO_URL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STORAGE_URL,
)

if TYPE_CHECKING:
    from cloudenv.pricing import PricingTables

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".cloudenv" / "defaults.toml"
PROJECT_CONFIG_NAME = "cloudenv.toml"


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = deep_merge(global_cfg, project_cfg)
    for section in ("leonardo", "storage", "polling", "pricing"):
        merged.setdefault(section, {})
    return merged


@dataclass(frozen=True, slots=True)
class Settings:
    leonardo_url: str = DEFAULT_LEONARDO_URL
    storage_url: str = DEFAULT_STORAGE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    pricing_path: Path | None = None

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, base_dir: Path | None = None) -> Settings:
        leonardo = config.get("leonardo", {})
        storage = config.get("storage", {})
        polling = config.get("polling", {})
        pricing = config.get("pricing", {})

        pricing_path = None
        if raw_path := pricing.get("path"):
            pricing_path = Path(raw_path).expanduser()
            if not pricing_path.is_absolute() and base_dir is not None:
                pricing_path = base_dir / pricing_path

        return cls(
            leonardo_url=leonardo.get("url", DEFAULT_LEONARDO_URL),
            storage_url=storage.get("url", DEFAULT_STORAGE_URL),
            request_timeout=float(leonardo.get("timeout", DEFAULT_REQUEST_TIMEOUT)),
            poll_interval=float(polling.get("interval", DEFAULT_POLL_INTERVAL)),
            pricing_path=pricing_path,
        )

    def pricing(self) -> PricingTables:
        from cloudenv.pricing import load_pricing

        return load_pricing(self.pricing_path)


def load_settings(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> Settings:
    config = load_config(project_dir=project_dir, global_path=global_path)
    return Settings.from_config(config, base_dir=project_dir or Path.cwd())
