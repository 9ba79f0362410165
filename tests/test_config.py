from __future__ import annotations

import pytest

from cli.allscreenshots.config import (
    API_KEY_ENV,
    Config,
    api_key_source,
    config_path,
    mask_api_key,
    require_api_key,
    resolve_api_key,
)
from cli.allscreenshots.errors import ConfigFileError, InvalidOptionError, MissingCredentialError


def _config(key: str | None) -> Config:
    config = Config()
    config.auth.api_key = key
    return config


@pytest.mark.parametrize(
    ("flag", "env", "stored", "expected", "source"),
    [
        ("flag-key", "env-key", "cfg-key", "flag-key", "flag"),
        ("flag-key", None, "cfg-key", "flag-key", "flag"),
        ("flag-key", "env-key", None, "flag-key", "flag"),
        ("flag-key", None, None, "flag-key", "flag"),
        (None, "env-key", "cfg-key", "env-key", "env"),
        (None, "env-key", None, "env-key", "env"),
        (None, None, "cfg-key", "cfg-key", "config"),
        (None, None, None, None, None),
        ("  ", "env-key", "cfg-key", "env-key", "env"),
        (None, "", "cfg-key", "cfg-key", "config"),
    ],
)
def test_api_key_precedence(flag, env, stored, expected, source):
    environ = {API_KEY_ENV: env} if env is not None else {}
    config = _config(stored)

    assert resolve_api_key(flag, config, environ) == expected
    assert api_key_source(flag, config, environ) == source


def test_require_api_key_raises_when_nothing_configured():
    with pytest.raises(MissingCredentialError) as excinfo:
        require_api_key(None, Config(), {})
    assert "ALLSCREENSHOTS_API_KEY" in excinfo.value.friendly()


def test_mask_api_key():
    assert mask_api_key("short") == "*****"
    assert mask_api_key("as_live_1234567890abcd") == "as_live_...abcd"


def test_config_path_honours_env_override(isolated_env):
    assert config_path() == isolated_env / "config" / "config.toml"


def test_load_missing_file_returns_defaults():
    config = Config.load()
    assert config.defaults.device == "Desktop HD"
    assert config.defaults.format == "png"
    assert config.display.protocol == "auto"
    assert config.auth.api_key is None


def test_save_creates_parent_dirs_and_round_trips(isolated_env):
    config = Config()
    config.auth.api_key = "secret-key-value"
    config.set_value("display.width", "120")
    config.set_value("defaults.display", "false")
    path = config.save()

    assert path.exists()
    loaded = Config.load()
    assert loaded.auth.api_key == "secret-key-value"
    assert loaded.display.width == 120
    assert loaded.defaults.display is False


def test_load_rejects_invalid_toml(isolated_env):
    path = config_path()
    path.parent.mkdir(parents=True)
    path.write_text("[auth\napi_key = ", encoding="utf-8")

    with pytest.raises(ConfigFileError):
        Config.load()


def test_set_value_validates_and_coerces():
    config = Config()
    config.set_value("defaults.format", "JPG")
    assert config.defaults.format == "jpeg"

    with pytest.raises(InvalidOptionError):
        config.set_value("display.height", "0")
    with pytest.raises(InvalidOptionError):
        config.set_value("display.protocol", "sixel")
    with pytest.raises(InvalidOptionError):
        config.set_value("auth.api_key", "nope")


def test_get_value_masks_api_key():
    config = _config("as_live_1234567890abcd")
    assert config.get_value("auth.api_key") == "as_live_...abcd"
    assert config.get_value("defaults.display") == "true"


@pytest.mark.parametrize(
    ("toml", "key"),
    [
        ("[auth]\napi_key = 12345\n", "auth.api_key"),
        ("[defaults]\ndisplay = \"yes\"\n", "defaults.display"),
        ("[defaults]\nformat = \"gif\"\n", "defaults.format"),
        ("[defaults]\noutput_dir = 3\n", "defaults.output_dir"),
        ("[display]\nwidth = \"wide\"\n", "display.width"),
        ("[display]\nheight = 0\n", "display.height"),
        ("[display]\nwidth = true\n", "display.width"),
        ("[display]\nprotocol = \"sixel\"\n", "display.protocol"),
    ],
)
def test_load_rejects_wrongly_typed_values(isolated_env, toml, key):
    path = config_path()
    path.parent.mkdir(parents=True)
    path.write_text(toml, encoding="utf-8")

    with pytest.raises(ConfigFileError, match=key):
        Config.load()


def test_load_normalises_format_from_file(isolated_env):
    path = config_path()
    path.parent.mkdir(parents=True)
    path.write_text("[defaults]\nformat = \"JPG\"\ndisplay = false\n\n[display]\nwidth = 100\n", encoding="utf-8")

    config = Config.load()

    assert config.defaults.format == "jpeg"
    assert config.defaults.display is False
    assert config.display.width == 100
