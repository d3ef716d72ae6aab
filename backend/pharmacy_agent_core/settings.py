from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path


_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AgentSettings:
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o"
    tool_temperature: float = 0.4
    redirect_temperature: float = 0.7
    max_iterations: int = 10
    timeout_seconds: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


def load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[2]
    for candidate in (repo_root / ".env", repo_root / "backend/.env"):
        if candidate.exists():
            load_local_env_file(candidate)


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> AgentSettings:
    max_iterations = _env_int("PHARMACY_MAX_ITERATIONS", 10)
    if max_iterations < 1:
        raise ConfigError("PHARMACY_MAX_ITERATIONS must be at least 1")
    timeout_seconds = _env_float("PHARMACY_CHAT_TIMEOUT_SECONDS", 60.0)
    if timeout_seconds <= 0:
        raise ConfigError("PHARMACY_CHAT_TIMEOUT_SECONDS must be positive")
    tool_temperature = _env_float("PHARMACY_TOOL_TEMPERATURE", 0.4)
    redirect_temperature = _env_float("PHARMACY_REDIRECT_TEMPERATURE", 0.7)
    for name, value in (
        ("PHARMACY_TOOL_TEMPERATURE", tool_temperature),
        ("PHARMACY_REDIRECT_TEMPERATURE", redirect_temperature),
    ):
        if not 0.0 <= value <= 2.0:
            raise ConfigError(f"{name} must be between 0 and 2")

    return AgentSettings(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_API_BASE_URL") or "https://api.openai.com/v1").strip().rstrip("/"),
        model=(os.getenv("PHARMACY_CHAT_MODEL") or "gpt-4o").strip(),
        tool_temperature=tool_temperature,
        redirect_temperature=redirect_temperature,
        max_iterations=max_iterations,
        timeout_seconds=timeout_seconds,
    )
