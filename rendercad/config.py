from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError

__version__ = "1.0.0"

DEFAULT_BASE_URL = "https://rendercad.ai"
DEFAULT_USER_AGENT = f"rendercad-ai-python-client/{__version__}"


def _parse_optional_float(value: str | None, env_name: str, minimum: float) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{env_name} must be numeric.") from exc
    if parsed <= minimum:
        raise ConfigurationError(f"{env_name} must be greater than {minimum}.")
    return parsed


def normalize_base_url(value: str | None) -> str:
    candidate = (value or "").strip().rstrip("/")
    return candidate or DEFAULT_BASE_URL


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    api_token: str | None = None
    timeout_seconds: float | None = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls(
            base_url=normalize_base_url(os.getenv("RENDERCAD_BASE_URL")),
            api_token=(os.getenv("RENDERCAD_API_TOKEN") or "").strip() or None,
            timeout_seconds=_parse_optional_float(
                os.getenv("RENDERCAD_TIMEOUT_SECONDS"),
                "RENDERCAD_TIMEOUT_SECONDS",
                0.0,
            ),
        )
