"""Tests for configuration loading and editing."""

import tomllib
from pathlib import Path

import pytest

import gmail_notifier.config as config_module
from gmail_notifier.config import (
    DEFAULTS,
    get_client_id,
    get_client_secret,
    get_defaults,
    get_notification_backend,
    init_config,
    load_config,
    set_config_value,
)
from gmail_notifier.config import _convert_value


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    """Point the config module at a temporary config file."""
    path = tmp_path / "config.toml"
    monkeypatch.setattr(config_module, "CONFIG_FILE", path)
    monkeypatch.setattr(config_module, "ensure_config_dir", lambda: None)
    monkeypatch.setattr(config_module, "_cached_config", None)
    return path


class TestLoadConfig:
    def test_missing_file_is_empty(self, config_file):
        assert load_config() == {}

    def test_reads_toml(self, config_file):
        config_file.write_text('[defaults]\npoll_interval = 120\n')

        config = load_config()

        assert config["defaults"]["poll_interval"] == 120

    def test_caches_until_reload(self, config_file):
        config_file.write_text('[oauth]\nclient_id = "one"\n')
        load_config()
        config_file.write_text('[oauth]\nclient_id = "two"\n')

        assert get_client_id(load_config()) == "one"
        assert get_client_id(load_config(force_reload=True)) == "two"


class TestInitConfig:
    def test_creates_template(self, config_file):
        assert init_config() is True

        with open(config_file, "rb") as f:
            tomllib.load(f)

    def test_keeps_existing_file(self, config_file):
        config_file.write_text("# mine\n")

        assert init_config() is False
        assert config_file.read_text() == "# mine\n"

    def test_overwrite(self, config_file):
        config_file.write_text("# mine\n")

        assert init_config(overwrite=True) is True
        assert config_file.read_text() != "# mine\n"


class TestGetDefaults:
    def test_builtin_defaults(self):
        assert get_defaults({}) == DEFAULTS

    def test_merges_over_builtins(self):
        defaults = get_defaults({"defaults": {"poll_interval": 300}})

        assert defaults["poll_interval"] == 300
        assert defaults["inbox_page_size"] == 20

    @pytest.mark.parametrize(
        "key",
        [
            "poll_interval",
            "inbox_page_size",
            "more_page_size",
            "unread_preview_size",
            "fetch_workers",
            "unread_count_cap",
        ],
    )
    def test_rejects_non_positive(self, key):
        with pytest.raises(ValueError, match=key):
            get_defaults({"defaults": {key: 0}})

    @pytest.mark.parametrize("value", [-5, "lots", 2.5, True])
    def test_rejects_bad_unread_limits(self, value):
        with pytest.raises(ValueError, match="unread_count_cap"):
            get_defaults({"defaults": {"unread_count_cap": value}})

        with pytest.raises(ValueError, match="unread_preview_size"):
            get_defaults({"defaults": {"unread_preview_size": value}})


class TestAccessors:
    def test_client_id_missing(self):
        assert get_client_id({}) is None
        assert get_client_id({"oauth": {"client_id": ""}}) is None

    def test_client_secret_from_config(self, monkeypatch):
        monkeypatch.delenv("GMAIL_NOTIFIER_CLIENT_SECRET", raising=False)

        assert get_client_secret({"oauth": {"client_secret": "cfg"}}) == "cfg"

    def test_client_secret_env_wins(self, monkeypatch):
        monkeypatch.setenv("GMAIL_NOTIFIER_CLIENT_SECRET", "env")

        assert get_client_secret({"oauth": {"client_secret": "cfg"}}) == "env"

    def test_notification_backend_default(self):
        assert get_notification_backend({}) == "auto"
        assert (
            get_notification_backend({"notifications": {"backend": "console"}})
            == "console"
        )


class TestSetConfigValue:
    """Tests for dot-notation config edits."""

    def test_sets_nested_int(self, config_file):
        set_config_value("defaults.poll_interval", "90")

        with open(config_file, "rb") as f:
            saved = tomllib.load(f)
        assert saved["defaults"]["poll_interval"] == 90

    def test_keeps_other_values(self, config_file):
        config_file.write_text('[oauth]\nclient_id = "abc"\n')

        set_config_value("notifications.backend", "console")

        config = load_config(force_reload=True)
        assert config["oauth"]["client_id"] == "abc"
        assert config["notifications"]["backend"] == "console"

    def test_invalid_int_raises(self, config_file):
        with pytest.raises(ValueError):
            set_config_value("defaults.poll_interval", "soon")


class TestConvertValue:
    @pytest.mark.parametrize(
        "raw,expected", [("true", True), ("YES", True), ("0", False), ("off", False)]
    )
    def test_bool_fields(self, raw, expected):
        assert _convert_value("exact_unread_count", raw) is expected

    def test_bad_bool(self):
        with pytest.raises(ValueError):
            _convert_value("interactive_sign_in", "maybe")

    def test_unknown_field_stays_string(self):
        assert _convert_value("client_id", "123") == "123"
