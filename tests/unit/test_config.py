import pytest

from obsidian_client.config import (
    ClientSettings,
    ConfigurationError,
    env_bool,
    env_int,
    env_seconds,
    load_client_settings,
    reload_dotenv_defaults,
)
from obsidian_client.config.dotenv import DotenvDefaults, read_dotenv


@pytest.fixture(autouse=True)
def _isolated_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    reload_dotenv_defaults()
    yield
    reload_dotenv_defaults()


def test_load_client_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("OBSIDIAN_BASE_URL", "https://panel.example:16662")
    monkeypatch.setenv("OBSIDIAN_STATUS_POLL_SECONDS", "0.5")
    monkeypatch.setenv("OBSIDIAN_MAX_RETRIES", "3")
    monkeypatch.setenv("OBSIDIAN_TRANSFER_CHUNK_BYTES", "1024")

    settings = load_client_settings()

    assert settings.base_url == "https://panel.example:16662"
    assert settings.status_poll_seconds == 0.5
    assert settings.max_retries == 3
    assert settings.transfer_chunk_bytes == 1024
    assert settings.cancel_ack_timeout_seconds == 5.0


def test_settings_reject_non_http_base_url():
    with pytest.raises(ConfigurationError):
        ClientSettings(base_url="ftp://panel")


def test_settings_reject_zero_poll_interval():
    with pytest.raises(ConfigurationError):
        ClientSettings(status_poll_seconds=0)


def test_dotenv_file_supplies_missing_values(monkeypatch, tmp_path):
    monkeypatch.delenv("OBSIDIAN_TEST_ONLY_VALUE", raising=False)
    (tmp_path / ".env").write_text("OBSIDIAN_TEST_ONLY_VALUE=yes\n")

    assert env_bool("OBSIDIAN_TEST_ONLY_VALUE") is True


def test_env_bool_rejects_garbage(monkeypatch):
    monkeypatch.setenv("OBSIDIAN_DEBUG", "maybe")

    with pytest.raises(ConfigurationError):
        env_bool("OBSIDIAN_DEBUG")


def test_env_seconds_rejects_negative(monkeypatch):
    monkeypatch.setenv("OBSIDIAN_REQUEST_TIMEOUT_SECONDS", "-1")

    with pytest.raises(ConfigurationError):
        env_seconds("OBSIDIAN_REQUEST_TIMEOUT_SECONDS")


def test_process_environment_wins_over_dotenv(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text("OBSIDIAN_MAX_RETRIES=9\n")
    monkeypatch.setenv("OBSIDIAN_MAX_RETRIES", "2")

    assert env_int("OBSIDIAN_MAX_RETRIES") == 2


def test_env_int_reports_setting_name(monkeypatch):
    monkeypatch.setenv("OBSIDIAN_MAX_RETRIES", "three")

    with pytest.raises(ConfigurationError, match="OBSIDIAN_MAX_RETRIES"):
        env_int("OBSIDIAN_MAX_RETRIES")


def test_read_dotenv_parses_exports_comments_and_quotes(tmp_path):
    path = tmp_path / "panel.env"
    path.write_text(
        "# panel settings\n"
        "export OBSIDIAN_BASE_URL='http://10.0.0.5:16662'\n"
        'OBSIDIAN_LOG_DIR="/var/log/obsidian"\n'
        "not a setting\n"
        "=orphan\n"
        "OBSIDIAN_DEBUG = on\n"
    )

    assert read_dotenv(path) == {
        "OBSIDIAN_BASE_URL": "http://10.0.0.5:16662",
        "OBSIDIAN_LOG_DIR": "/var/log/obsidian",
        "OBSIDIAN_DEBUG": "on",
    }
    assert read_dotenv(tmp_path / "absent.env") == {}


def test_dotenv_defaults_prefer_earlier_files_and_reload(tmp_path):
    first, second = tmp_path / "first.env", tmp_path / "second.env"
    first.write_text("SHARED=first\n")
    second.write_text("SHARED=second\nONLY_SECOND=2\n")
    defaults = DotenvDefaults((first, second))

    assert defaults.get("SHARED") == "first"
    assert defaults.get("ONLY_SECOND") == "2"

    first.write_text("SHARED=changed\n")
    assert defaults.get("SHARED") == "first"
    defaults.reload()
    assert defaults.get("SHARED") == "changed"
