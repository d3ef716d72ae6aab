from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from pharmacy_agent_core import (  # noqa: E402
    AgentSettings,
    ConversationOrchestrator,
    SafetyClassifier,
    ToolExecutor,
    ToolRegistry,
)
from pharmacy_store import PharmacyService, SQLitePharmacyDB  # noqa: E402
from pharmacy_tools import TOOL_DECLARATIONS, MedicationToolset, build_handlers  # noqa: E402


@pytest.fixture
def pharmacy_db(tmp_path) -> SQLitePharmacyDB:
    return SQLitePharmacyDB(str(tmp_path / "pharmacy-test.sqlite"))


@pytest.fixture
def service(pharmacy_db) -> PharmacyService:
    return PharmacyService(pharmacy_db)


@pytest.fixture
def toolset(service) -> MedicationToolset:
    return MedicationToolset(service)


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry(TOOL_DECLARATIONS)


@pytest.fixture
def executor(registry, toolset) -> ToolExecutor:
    return ToolExecutor(registry, build_handlers(toolset))


@pytest.fixture
def make_orchestrator(registry, executor) -> Callable[..., ConversationOrchestrator]:
    def _make(backend: Any, **settings_overrides: Any) -> ConversationOrchestrator:
        return ConversationOrchestrator(
            backend=backend,
            registry=registry,
            executor=executor,
            classifier=SafetyClassifier(),
            settings=AgentSettings(api_key="test-key", **settings_overrides),
        )

    return _make


@pytest.fixture
def run_turn() -> Callable[..., list[Any]]:
    async def _drain(orchestrator: ConversationOrchestrator, message: str, user_id: int, history: Any) -> list[Any]:
        return [event async for event in orchestrator.process_message(message, user_id, history)]

    def _run(orchestrator: ConversationOrchestrator, message: str, user_id: int = 1, history: Any = None) -> list[Any]:
        return asyncio.run(_drain(orchestrator, message, user_id, history))

    return _run


@pytest.fixture
def backend_module(tmp_path, monkeypatch):
    db_path = tmp_path / "pharmacy-app.sqlite"
    monkeypatch.setenv("PHARMACY_DB_PATH", str(db_path))
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("PHARMACY_LOG_LEVEL", "WARNING")

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client
