"""Configuration helpers for the image generation panel."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_GENERATE_PATH = "/api/generate"
DEFAULT_MAX_RESULTS = 100


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    api_base_url: str = DEFAULT_API_BASE_URL
    generate_path: str = DEFAULT_GENERATE_PATH
    request_timeout: Optional[float] = None
    max_results: int = DEFAULT_MAX_RESULTS
    log_dir: Path = Path("logs")
    download_dir: Path = Path("downloads")
    server_name: str = "127.0.0.1"
    server_port: int = 7860
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def generate_url(self) -> str:
        """Absolute URL of the generation endpoint."""
        path = self.generate_path if self.generate_path.startswith("/") else f"/{self.generate_path}"
        return self.api_base_url.rstrip("/") + path


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw in (None, ""):
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    max_results = _env_int("MAX_RESULTS", DEFAULT_MAX_RESULTS)
    if max_results < 1:
        max_results = DEFAULT_MAX_RESULTS

    metadata: dict[str, Any] = {}
    if env_path.exists():
        metadata["env_file"] = str(env_path)

    return AppConfig(
        api_base_url=os.getenv("IMAGE_API_BASE_URL") or DEFAULT_API_BASE_URL,
        generate_path=os.getenv("IMAGE_API_PATH") or DEFAULT_GENERATE_PATH,
        request_timeout=_env_float("IMAGE_API_TIMEOUT"),
        max_results=max_results,
        log_dir=Path(os.getenv("LOG_DIR") or "logs").expanduser(),
        download_dir=Path(os.getenv("DOWNLOAD_DIR") or "downloads").expanduser(),
        server_name=os.getenv("GRADIO_SERVER_NAME") or "127.0.0.1",
        server_port=_env_int("GRADIO_SERVER_PORT", 7860),
        metadata=metadata,
    )
