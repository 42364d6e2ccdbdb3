"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from config.settings import AppConfig, load_config

_ENV_NAMES = (
    "IMAGE_API_BASE_URL",
    "IMAGE_API_PATH",
    "IMAGE_API_TIMEOUT",
    "MAX_RESULTS",
    "LOG_DIR",
    "DOWNLOAD_DIR",
    "GRADIO_SERVER_NAME",
    "GRADIO_SERVER_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield


def test_defaults_without_env(tmp_path):
    config = load_config(str(tmp_path / "missing.env"))

    assert config.generate_url == "http://127.0.0.1:8000/api/generate"
    assert config.request_timeout is None
    assert config.max_results == 100
    assert config.server_port == 7860


def test_env_file_overrides(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# backend\n"
        "IMAGE_API_BASE_URL=https://images.example.com/\n"
        "IMAGE_API_PATH=v2/generate\n"
        "IMAGE_API_TIMEOUT=45\n"
        "MAX_RESULTS=20\n"
        f"DOWNLOAD_DIR={tmp_path / 'out'}\n",
        encoding="utf-8",
    )
    for name in _ENV_NAMES:
        monkeypatch.setenv(name, "")  # registers cleanup for values written by load_config

    config = load_config(str(env_file))

    assert config.generate_url == "https://images.example.com/v2/generate"
    assert config.request_timeout == 45.0
    assert config.max_results == 20
    assert config.download_dir == tmp_path / "out"
    assert config.metadata["env_file"] == str(env_file)


def test_invalid_numbers_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("MAX_RESULTS", "lots")
    monkeypatch.setenv("IMAGE_API_TIMEOUT", "-3")
    monkeypatch.setenv("GRADIO_SERVER_PORT", "http")

    config = load_config(str(tmp_path / "missing.env"))

    assert config.max_results == 100
    assert config.request_timeout is None
    assert config.server_port == 7860


def test_generate_url_joins_slashes():
    config = AppConfig(api_base_url="http://host:1/", generate_path="/api/generate")

    assert config.generate_url == "http://host:1/api/generate"
    assert isinstance(config.log_dir, Path)
