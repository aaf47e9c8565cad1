"""Runtime settings read from the process environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

CACHE_BACKENDS = ("sqlite", "json")


def _get(env: Mapping[str, str], key: str, default: str = "") -> str:
    return env.get(key, default).strip()


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _get(env, key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Setting {key} must be an integer, got {raw!r}")


@dataclass
class Settings:
    octopod_api_url: str = "https://octopod.octo.com/api"
    octopod_client_id: str = ""
    octopod_client_secret: str = ""
    octopod_timeout: int = 15

    db_path: Path = Path("data/jobboard.db")
    cache_backend: str = "sqlite"
    cache_file: Path = Path("data/cache.json")

    jobboard_url: str = "https://jobs.octo.com"

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    mail_from: str = ""

    log_level: str = "INFO"
    sync_interval: int = 3600

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables (os.environ by default)."""
        env = os.environ if env is None else env
        defaults = cls()
        smtp_user = _get(env, "SMTP_USER")
        return cls(
            octopod_api_url=_get(env, "OCTOPOD_API_URL", defaults.octopod_api_url).rstrip("/"),
            octopod_client_id=_get(env, "OCTOPOD_CLIENT_ID"),
            octopod_client_secret=_get(env, "OCTOPOD_CLIENT_SECRET"),
            octopod_timeout=_get_int(env, "OCTOPOD_TIMEOUT", defaults.octopod_timeout),
            db_path=Path(_get(env, "JOBBOARD_DB", str(defaults.db_path))),
            cache_backend=_get(env, "JOBBOARD_CACHE", defaults.cache_backend).lower(),
            cache_file=Path(_get(env, "JOBBOARD_CACHE_FILE", str(defaults.cache_file))),
            jobboard_url=_get(env, "JOBBOARD_URL", defaults.jobboard_url),
            smtp_host=_get(env, "SMTP_HOST"),
            smtp_port=_get_int(env, "SMTP_PORT", defaults.smtp_port),
            smtp_user=smtp_user,
            smtp_password=_get(env, "SMTP_PASSWORD"),
            mail_from=_get(env, "MAIL_FROM", smtp_user),
            log_level=_get(env, "LOG_LEVEL", defaults.log_level).upper(),
            sync_interval=_get_int(env, "SYNC_INTERVAL", defaults.sync_interval),
        )

    def validate(self) -> List[str]:
        """
        Returns a list of configuration error messages. Empty list means the
        settings are usable for a synchronization cycle.
        """
        errors: List[str] = []
        if not self.octopod_client_id:
            errors.append("Missing OCTOPOD_CLIENT_ID")
        if not self.octopod_client_secret:
            errors.append("Missing OCTOPOD_CLIENT_SECRET")
        if self.cache_backend not in CACHE_BACKENDS:
            errors.append(
                f"JOBBOARD_CACHE must be one of {', '.join(CACHE_BACKENDS)} (got {self.cache_backend!r})"
            )
        if self.sync_interval <= 0:
            errors.append("SYNC_INTERVAL must be a positive number of seconds")
        return errors

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.mail_from)
