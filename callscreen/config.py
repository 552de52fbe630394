# file: callscreen/config.py
"""
Configuration loader.

Design goals:
- Support `.env` for local development.
- Support YAML for screening preferences and non-secret defaults.
- Validate configuration with pydantic.

Precedence (highest to lowest):
1. OS environment variables
2. `.env` values
3. YAML config file values
4. Code defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field, field_validator
from pydantic import ConfigDict as PydanticConfigDict

from callscreen.screening.options import Configuration, Contact, Flag, Group, Message

PERMISSIONS: tuple[str, ...] = ("contacts", "call_log", "sms")


def _parse_flags(enum_cls: type[Flag], value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return sorted(enum_cls.from_mask(value), key=lambda m: m.bit)
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [v.strip().lower() if isinstance(v, str) else v for v in value]
        return [v for v in items if v != ""]
    return value


class ScreeningSettings(BaseModel):
    model_config = PydanticConfigDict(extra="ignore")

    # General
    home_region: str | None = None
    log_level: str = "INFO"
    json_logging: bool = False

    # Store
    db_path: Path = Path(".callscreen/data.sqlite3")
    granted_permissions: list[str] = Field(default_factory=lambda: list(PERMISSIONS))

    # Screening preferences
    contacted_checked: bool = False
    contacted: list[Contact] = Field(default_factory=lambda: [Contact.CALL, Contact.MESSAGE])
    groups_checked: bool = False
    groups: list[Group] = Field(default_factory=lambda: [Group.LOCAL])
    repeated_checked: bool = False
    repeated_minutes: int = Field(default=5, ge=1)
    repeated_count: int = Field(default=3, ge=1)
    messages_checked: bool = False
    messages: list[Message] = Field(default_factory=lambda: [Message.INBOX])

    @field_validator("home_region", mode="before")
    @classmethod
    def _upper_region(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator("granted_permissions", mode="before")
    @classmethod
    def _split_permissions(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [item.strip().lower() for item in v.split(",") if item.strip()]
        return v

    @field_validator("granted_permissions")
    @classmethod
    def _known_permissions(cls, v: list[str]) -> list[str]:
        unknown = [p for p in v if p not in PERMISSIONS]
        if unknown:
            raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
        return v

    @field_validator("contacted", mode="before")
    @classmethod
    def _contacted_flags(cls, v: Any) -> Any:
        return _parse_flags(Contact, v)

    @field_validator("groups", mode="before")
    @classmethod
    def _groups_flags(cls, v: Any) -> Any:
        return _parse_flags(Group, v)

    @field_validator("messages", mode="before")
    @classmethod
    def _messages_flags(cls, v: Any) -> Any:
        return _parse_flags(Message, v)

    def screening_config(self) -> Configuration:
        return Configuration(
            contacted_checked=self.contacted_checked,
            contacted=frozenset(self.contacted),
            groups_checked=self.groups_checked,
            groups=frozenset(self.groups),
            repeated_checked=self.repeated_checked,
            repeated_minutes=self.repeated_minutes,
            repeated_count=self.repeated_count,
            messages_checked=self.messages_checked,
            messages=frozenset(self.messages),
        )


_ENV_MAP: dict[str, str] = {
    "CALLSCREEN_HOME_REGION": "home_region",
    "CALLSCREEN_LOG_LEVEL": "log_level",
    "CALLSCREEN_JSON_LOGGING": "json_logging",
    "CALLSCREEN_DB_PATH": "db_path",
    # Comma-separated: contacts,call_log,sms
    "CALLSCREEN_PERMISSIONS": "granted_permissions",
    "CALLSCREEN_CONTACTED_CHECKED": "contacted_checked",
    # Comma-separated flag names (call,message) or an integer bitmask.
    "CALLSCREEN_CONTACTED": "contacted",
    "CALLSCREEN_GROUPS_CHECKED": "groups_checked",
    "CALLSCREEN_GROUPS": "groups",
    "CALLSCREEN_REPEATED_CHECKED": "repeated_checked",
    "CALLSCREEN_REPEATED_MINUTES": "repeated_minutes",
    "CALLSCREEN_REPEATED_COUNT": "repeated_count",
    "CALLSCREEN_MESSAGES_CHECKED": "messages_checked",
    "CALLSCREEN_MESSAGES": "messages",
}

_FLAG_FIELDS = frozenset({"contacted", "groups", "messages"})


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    return raw if isinstance(raw, dict) else {}


def _read_dotenv(path: Path) -> dict[str, str]:
    # dotenv_values does not mutate os.environ; it just parses the file.
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if isinstance(k, str) and isinstance(v, str):
            out[k] = v
    return out


def _overlay_env(target: dict[str, Any], env: dict[str, str]) -> None:
    for env_key, field_name in _ENV_MAP.items():
        if env_key not in env:
            continue
        raw = env[env_key]
        if field_name in _FLAG_FIELDS and raw.strip().isdigit():
            target[field_name] = int(raw)
        else:
            target[field_name] = raw


def load_settings(
    *, yaml_path: Path | None = None, env_path: Path | None = None
) -> ScreeningSettings:
    """
    Load settings from YAML and .env, with OS env overrides.

    Args:
        yaml_path: Optional YAML config path.
        env_path: Optional .env path (default: `.env` if present).
    """

    data: dict[str, Any] = {}

    if env_path is None:
        maybe = Path(".env")
        env_path = maybe if maybe.exists() else None

    dotenv = _read_dotenv(env_path) if env_path is not None and env_path.exists() else {}

    # YAML path resolution:
    # - explicit yaml_path wins
    # - else CALLSCREEN_CONFIG from OS env wins
    # - else CALLSCREEN_CONFIG from .env
    if yaml_path is None:
        cfg = os.environ.get("CALLSCREEN_CONFIG") or dotenv.get("CALLSCREEN_CONFIG")
        if cfg:
            yaml_path = Path(cfg)

    if yaml_path is not None and yaml_path.exists():
        data.update(_read_yaml(yaml_path))

    if dotenv:
        _overlay_env(data, dotenv)

    # OS env overrides .env/YAML
    os_env: dict[str, str] = {k: v for k, v in os.environ.items() if k in _ENV_MAP}
    _overlay_env(data, os_env)

    return ScreeningSettings.model_validate(data)
