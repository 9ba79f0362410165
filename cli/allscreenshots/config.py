from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping

import tomli_w
import typer

from .errors import ConfigFileError, FileAccessError, InvalidOptionError, MissingCredentialError
from .models import parse_format

APP_NAME = "allscreenshots"
API_KEY_ENV = "ALLSCREENSHOTS_API_KEY"
CONFIG_PATH_ENV = "ALLSCREENSHOTS_CONFIG"

DISPLAY_PROTOCOLS: tuple[str, ...] = ("auto", "kitty", "iterm", "blocks", "none")


def config_path() -> Path:
    override = (os.environ.get(CONFIG_PATH_ENV) or "").strip()
    if override:
        return Path(override).expanduser()
    return Path(typer.get_app_dir(APP_NAME)) / "config.toml"


@dataclass(slots=True)
class AuthConfig:
    api_key: str | None = None


@dataclass(slots=True)
class DefaultsConfig:
    device: str | None = "Desktop HD"
    format: str | None = "png"
    output_dir: str | None = "./screenshots"
    display: bool | None = True


@dataclass(slots=True)
class DisplayConfig:
    protocol: str | None = "auto"
    width: int | None = 80
    height: int | None = 24


@dataclass(slots=True)
class Config:
    auth: AuthConfig = field(default_factory=AuthConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        config = cls()
        for section_name in ("auth", "defaults", "display"):
            raw = data.get(section_name) or {}
            if not isinstance(raw, Mapping):
                raise ConfigFileError(f"[{section_name}] must be a table.")
            section = getattr(config, section_name)
            for key, value in raw.items():
                if hasattr(section, key):
                    setattr(section, key, _checked(f"{section_name}.{key}", value))
        return config

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Read the TOML config, falling back to built-in defaults when absent."""
        target = path or config_path()
        if not target.exists():
            return cls()
        try:
            with target.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigFileError(f"Failed to parse {target}: {exc}") from exc
        except OSError as exc:
            raise FileAccessError(f"Failed to read {target}: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        # TOML has no null, so unset values are omitted.
        return {
            name: {key: value for key, value in asdict(getattr(self, name)).items() if value is not None}
            for name in ("auth", "defaults", "display")
        }

    def save(self, path: Path | None = None) -> Path:
        target = path or config_path()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(tomli_w.dumps(self.to_dict()), encoding="utf-8")
        except OSError as exc:
            raise FileAccessError(f"Failed to write {target}: {exc}") from exc
        return target

    def get_value(self, key: str) -> str | None:
        section, name = _split_key(key, SETTABLE_KEYS + ("auth.api_key",))
        value = getattr(getattr(self, section), name)
        if value is None:
            return None
        if key == "auth.api_key":
            return mask_api_key(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def set_value(self, key: str, raw: str) -> None:
        section, name = _split_key(key, SETTABLE_KEYS)
        setattr(getattr(self, section), name, _coerce(key, raw))


SETTABLE_KEYS: tuple[str, ...] = (
    "defaults.device",
    "defaults.format",
    "defaults.output_dir",
    "defaults.display",
    "display.protocol",
    "display.width",
    "display.height",
)


def _split_key(key: str, allowed: tuple[str, ...]) -> tuple[str, str]:
    if key not in allowed:
        raise InvalidOptionError(f"Unknown config key: {key}. Valid keys: {', '.join(allowed)}", option="key")
    section, name = key.split(".", 1)
    return section, name


def _coerce(key: str, raw: str) -> Any:
    value = raw.strip()
    if key == "defaults.display":
        lowered = value.lower()
        if lowered not in ("true", "false"):
            raise InvalidOptionError("Value must be 'true' or 'false'", option=key)
        return lowered == "true"
    if key in ("display.width", "display.height"):
        try:
            number = int(value)
        except ValueError as exc:
            raise InvalidOptionError("Value must be a number", option=key) from exc
        if number <= 0:
            raise InvalidOptionError("Value must be greater than zero", option=key)
        return number
    if key == "display.protocol" and value not in DISPLAY_PROTOCOLS:
        raise InvalidOptionError(f"Protocol must be one of: {', '.join(DISPLAY_PROTOCOLS)}", option=key)
    if key == "defaults.format":
        return parse_format(value)
    return value


def _checked(key: str, value: Any) -> Any:
    """Validate one value read from the config file."""
    if key == "defaults.display":
        if not isinstance(value, bool):
            raise ConfigFileError(f"{key} must be true or false, got {value!r}")
        return value
    if key in ("display.width", "display.height"):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigFileError(f"{key} must be a positive integer, got {value!r}")
        return value
    if not isinstance(value, str):
        raise ConfigFileError(f"{key} must be a string, got {value!r}")
    if key in ("defaults.format", "display.protocol"):
        try:
            return _coerce(key, value)
        except InvalidOptionError as exc:
            raise ConfigFileError(f"{key}: {exc.message}") from exc
    return value


def _clean(value: str | None) -> str | None:
    stripped = (value or "").strip()
    return stripped or None


def resolve_api_key(
    flag: str | None,
    config: Config,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Pick the API key: explicit flag, then environment, then config file."""
    env = os.environ if environ is None else environ
    return _clean(flag) or _clean(env.get(API_KEY_ENV)) or _clean(config.auth.api_key)


def api_key_source(flag: str | None, config: Config, environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    if _clean(flag):
        return "flag"
    if _clean(env.get(API_KEY_ENV)):
        return "env"
    if _clean(config.auth.api_key):
        return "config"
    return None


def require_api_key(flag: str | None, config: Config, environ: Mapping[str, str] | None = None) -> str:
    key = resolve_api_key(flag, config, environ)
    if key is None:
        raise MissingCredentialError()
    return key


def mask_api_key(key: str) -> str:
    if len(key) <= 12:
        return "*" * len(key)
    return f"{key[:8]}...{key[-4:]}"
