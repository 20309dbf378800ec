"""Runtime settings read from environment variables."""

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .board import DEFAULT_USER_AGENT, HH_API_URL
from .normalize import DEFAULT_MODEL

DEFAULT_DATABASE_URL = "sqlite:///data/jobrank.db"

# Accepted names for the model credential, first match wins
API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class ConfigError(Exception):
    """Raised when required settings are missing."""
    pass


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_model: str = DEFAULT_MODEL
    user_agent: str = DEFAULT_USER_AGENT
    api_url: str = HH_API_URL
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ConfigError: If the model API key is missing
        """
        env = os.environ if environ is None else environ

        def read(name: str, default: Optional[str] = None) -> Optional[str]:
            value = env.get(name, "").strip()
            return value or default

        api_key = next((read(name) for name in API_KEY_VARS if read(name)), None)
        if not api_key:
            raise ConfigError(
                "Missing required configuration: set " + " or ".join(API_KEY_VARS)
            )

        return cls(
            gemini_api_key=api_key,
            gemini_model=read("GEMINI_MODEL", DEFAULT_MODEL),
            user_agent=read("HH_USER_AGENT", DEFAULT_USER_AGENT),
            api_url=read("HH_API_URL", HH_API_URL),
            database_url=read("DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=read("JOBRANK_LOG_LEVEL", "INFO").upper(),
        )


def describe_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, bool]:
    """Which known settings are present (never their values)."""
    env = os.environ if environ is None else environ
    names = API_KEY_VARS + ("GEMINI_MODEL", "HH_USER_AGENT", "HH_API_URL", "DATABASE_URL")
    return {name: bool(env.get(name, "").strip()) for name in names}
