from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RunOnceConfig:
    idle_minutes: int = 1
    cloud_url: str = ""
    cloud_token: str = ""
    cloud_timeout_seconds: float = 30.0
    reset_retries_on_online: bool = False
    poll_interval_seconds: float = 10.0

    @staticmethod
    def from_env() -> RunOnceConfig:
        return RunOnceConfig(
            idle_minutes=int(os.environ.get("RUNONCE_IDLE_MINUTES", "1")),
            cloud_url=os.environ.get("RUNONCE_CLOUD_URL", ""),
            cloud_token=os.environ.get("RUNONCE_CLOUD_TOKEN", ""),
            cloud_timeout_seconds=float(os.environ.get("RUNONCE_CLOUD_TIMEOUT", "30")),
            reset_retries_on_online=_env_bool("RUNONCE_RESET_RETRIES_ON_ONLINE", False),
            poll_interval_seconds=float(os.environ.get("RUNONCE_POLL_INTERVAL", "10")),
        )
