from __future__ import annotations

import os
from dataclasses import dataclass, field


DEFAULT_CORS_ORIGIN = "http://localhost:5173"


def _cors_origins_from_env() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGIN)
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or [DEFAULT_CORS_ORIGIN]


def _seed_from_env() -> int | None:
    raw = os.getenv("EVENTFLOW_SEED", "").strip()
    if not raw:
        return None
    return int(raw)


@dataclass(slots=True)
class EngineConfig:
    # Library file shared by the API server and the CLI
    data_path: str = "data/events.json"

    # HTTP surface
    cors_origins: list[str] = field(default_factory=lambda: [DEFAULT_CORS_ORIGIN])

    # Fixed seed for reproducible runs; None draws fresh randomness per run
    seed: int | None = None

    log_level: str = "INFO"


def load_config() -> EngineConfig:
    return EngineConfig(
        data_path=os.getenv("EVENTFLOW_DATA_PATH", "data/events.json").strip() or "data/events.json",
        cors_origins=_cors_origins_from_env(),
        seed=_seed_from_env(),
        log_level=os.getenv("EVENTFLOW_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
