from __future__ import annotations

import json
import logging
import os
from contextlib import aclosing
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator

from pharmacy_agent_core import (
    ConversationOrchestrator,
    ErrorEvent,
    OpenAICompatibleBackend,
    SafetyClassifier,
    ToolExecutor,
    ToolRegistry,
    bootstrap_local_env,
    load_settings,
)
from pharmacy_agent_core.models import utc_timestamp
from pharmacy_store import PharmacyService, SQLitePharmacyDB
from pharmacy_tools import TOOL_DECLARATIONS, MedicationToolset, build_handlers

bootstrap_local_env()

logging.basicConfig(
    level=os.getenv("PHARMACY_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    message: str
    user_id: int = Field(gt=0)
    history: list[ChatTurn] = Field(default_factory=list)

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be empty")
        return value


class PharmacyAssistantApp:
    def __init__(self) -> None:
        db_path = os.getenv(
            "PHARMACY_DB_PATH",
            str((Path(__file__).resolve().parent / "pharmacy.sqlite")),
        )
        self.settings = load_settings()
        self.db = SQLitePharmacyDB(db_path)
        self.service = PharmacyService(self.db)
        self.toolset = MedicationToolset(self.service)
        self.registry = ToolRegistry(TOOL_DECLARATIONS)
        self.executor = ToolExecutor(self.registry, build_handlers(self.toolset))
        self.classifier = SafetyClassifier()
        self.backend = OpenAICompatibleBackend(self.settings)
        self.orchestrator = ConversationOrchestrator(
            backend=self.backend,
            registry=self.registry,
            executor=self.executor,
            classifier=self.classifier,
            settings=self.settings,
        )


container = PharmacyAssistantApp()
app = FastAPI(title="Pharmacy Assistant Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _emit_sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": utc_timestamp()}


@app.post("/chat")
async def chat(payload: ChatRequest):
    orchestrator = container.orchestrator
    if not orchestrator.backend.configured:
        raise HTTPException(status_code=503, detail="Model backend is not configured.")

    history = [turn.model_dump() for turn in payload.history]

    async def event_stream() -> AsyncIterator[str]:
        events = orchestrator.process_message(payload.message, payload.user_id, history)
        try:
            async with aclosing(events):
                async for event in events:
                    body = event.as_dict()
                    yield _emit_sse(body["type"], body)
        except Exception:
            logger.exception("chat stream failed user=%s", payload.user_id)
            failure = ErrorEvent(error="An error occurred while processing your request.")
            yield _emit_sse("error", failure.as_dict())

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
