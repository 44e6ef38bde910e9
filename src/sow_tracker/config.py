from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .dictionaries import DEFAULT_USD_CONVERSION_RATE


@dataclass(frozen=True)
class Settings:
    environment: str = "dev"
    project_id: str | None = None
    vertex_location: str = "us-central1"
    vertex_model: str = "gemini-2.5-flash"
    contracts_collection: str = "sows"
    default_usd_conversion_rate: float = DEFAULT_USD_CONVERSION_RATE
    seed_sample_contracts: bool = True

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"


def _flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        environment=env.get("ENVIRONMENT", "dev"),
        project_id=env.get("PROJECT_ID") or None,
        vertex_location=env.get("VERTEX_LOCATION", "us-central1"),
        vertex_model=env.get("VERTEX_MODEL", "gemini-2.5-flash"),
        contracts_collection=env.get("CONTRACTS_COLLECTION", "sows"),
        default_usd_conversion_rate=float(
            env.get("DEFAULT_USD_CONVERSION_RATE", DEFAULT_USD_CONVERSION_RATE)
        ),
        seed_sample_contracts=_flag(env.get("SEED_SAMPLE_CONTRACTS"), True),
    )


__all__ = ["Settings", "load_settings"]
