"""Configuration provider following Black Box Design principles."""
from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..modules.config import ConfigModule
from ..modules.session import AutoStart
from ..modules.session.expiration import parse_relative


@dataclass
class CookieConfig:
    """Session cookie attributes, forwarded to the HTTP transport."""
    name: str = "satchel_sid"
    visit_name: str = "satchel_visit"
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


@dataclass
class SessionConfig:
    """Session configuration."""
    expiration: Optional[int] = None
    auto_start: AutoStart = AutoStart.SMART
    save_path: str = "satchel:session"
    max_lifetime: int = 10800
    cookie: CookieConfig = field(default_factory=CookieConfig)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...


def _parse_seconds(value: Optional[str], name: str) -> Optional[int]:
    """Parse "3600" or "14 days" into seconds; empty or "0" means unset."""
    if value is None or value.strip() in ("", "0"):
        return None
    value = value.strip()
    seconds = int(value) if value.isdigit() else parse_relative(value)
    if seconds is None:
        raise ValueError(f"{name} must be a number of seconds or a duration like '14 days', got {value!r}")
    return int(seconds)


class EnvConfigProvider:
    """Session configuration built from the environment-backed config module."""

    def __init__(self, config: Optional[ConfigModule] = None):
        self.config = config or ConfigModule()

    def get_session_config(self) -> SessionConfig:
        """Get session configuration, validating the raw SESSION_* values."""
        auto_start = self.config.get("session_auto_start")
        if auto_start not in {mode.value for mode in AutoStart}:
            raise ValueError(
                f"SESSION_AUTO_START must be one of always, smart, never; got {auto_start!r}"
            )

        samesite = self.config.get("session_cookie_samesite")
        if samesite not in ("lax", "strict", "none"):
            raise ValueError(f"SESSION_COOKIE_SAMESITE must be lax, strict or none; got {samesite!r}")

        return SessionConfig(
            expiration=_parse_seconds(self.config.get("session_expiration"), "SESSION_EXPIRATION"),
            auto_start=AutoStart(auto_start),
            save_path=self.config.get("session_save_path"),
            max_lifetime=_parse_seconds(self.config.get("session_max_lifetime"), "SESSION_MAX_LIFETIME")
            or 10800,
            cookie=CookieConfig(
                name=self.config.get("session_cookie_name"),
                visit_name=self.config.get("session_visit_cookie_name"),
                path=self.config.get("session_cookie_path"),
                domain=self.config.get("session_cookie_domain"),
                secure=self.config.get("session_cookie_secure"),
                httponly=self.config.get("session_cookie_httponly"),
                samesite=samesite,
            ),
        )
