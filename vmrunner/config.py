"""Application settings loaded from the environment."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_COMPUTE_BASE_URL = "https://compute.excloud.in"
DEFAULT_STATUS_FIELDS = ("state", "status", "data.state", "data.status")
DEFAULT_REPOLL_DELAYS = (0.0, 3.0, 10.0)
DEFAULT_CREDENTIALS_FILE = Path.home() / ".config" / "vmrunner" / "credentials.json"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and passed around."""
    app_username: str = ""
    app_password: str = ""
    compute_base_url: str = DEFAULT_COMPUTE_BASE_URL
    production: bool = False
    status_fields: Tuple[str, ...] = DEFAULT_STATUS_FIELDS
    repoll_delays: Tuple[float, ...] = DEFAULT_REPOLL_DELAYS
    credentials_file: Path = DEFAULT_CREDENTIALS_FILE
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.compute_base_url.startswith(("http://", "https://")):
            raise ValueError("COMPUTE_BASE_URL must start with http:// or https://")
        if not self.status_fields:
            raise ValueError("VM_STATUS_FIELDS must name at least one field")
        if not self.repoll_delays:
            raise ValueError("VM_REPOLL_DELAYS must contain at least one delay")
        if any(delay < 0 for delay in self.repoll_delays):
            raise ValueError("VM_REPOLL_DELAYS must be non-negative")
        object.__setattr__(self, "compute_base_url", self.compute_base_url.rstrip("/"))


def _split_list(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_delays(raw: str) -> Tuple[float, ...]:
    try:
        return tuple(float(item) for item in _split_list(raw))
    except ValueError:
        raise ValueError(f"VM_REPOLL_DELAYS must be comma-separated numbers, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from a mapping, or from .env plus the process environment."""
    if env is None:
        load_dotenv()
        env = os.environ

    status_fields = env.get("VM_STATUS_FIELDS")
    repoll_delays = env.get("VM_REPOLL_DELAYS")
    credentials_file = env.get("VMRUNNER_CREDENTIALS_FILE")

    return Settings(
        app_username=env.get("APP_USERNAME", ""),
        app_password=env.get("APP_PASSWORD", ""),
        compute_base_url=env.get("COMPUTE_BASE_URL", DEFAULT_COMPUTE_BASE_URL).strip(),
        production=env.get("APP_ENV", "").strip().lower() == "production",
        status_fields=_split_list(status_fields) if status_fields is not None else DEFAULT_STATUS_FIELDS,
        repoll_delays=_parse_delays(repoll_delays) if repoll_delays is not None else DEFAULT_REPOLL_DELAYS,
        credentials_file=Path(credentials_file).expanduser() if credentials_file else DEFAULT_CREDENTIALS_FILE,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
