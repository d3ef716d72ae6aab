"""Streaming client for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Protocol

import httpx

from .models import DeltaChunk, ToolCallFragment
from .settings import AgentSettings


logger = logging.getLogger(__name__)


class ModelBackendError(Exception):
    pass


class ChatBackend(Protocol):
    @property
    def configured(self) -> bool: ...

    def stream_chat(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float,
    ) -> AsyncGenerator[DeltaChunk, None]: ...


def provider_error_message(status_code: int, body: str) -> str:
    message = body.strip()
    try:
        payload = json.loads(message) if message else None
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {status_code}"


def chunk_from_payload(payload: dict[str, Any]) -> DeltaChunk | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    delta = choices[0].get("delta") if isinstance(choices[0], dict) else None
    if not isinstance(delta, dict):
        return None

    content = delta.get("content")
    text = content if isinstance(content, str) and content else None

    fragments: list[ToolCallFragment] = []
    for raw in delta.get("tool_calls") or []:
        if not isinstance(raw, dict):
            continue
        function = raw.get("function") if isinstance(raw.get("function"), dict) else {}
        index = raw.get("index")
        fragments.append(
            ToolCallFragment(
                id=raw.get("id") or None,
                function_name=function.get("name") or None,
                arguments_fragment=function.get("arguments"),
                index=index if isinstance(index, int) else None,
            )
        )

    if text is None and not fragments:
        return None
    return DeltaChunk(text=text, tool_calls=tuple(fragments))


class OpenAICompatibleBackend:
    def __init__(self, settings: AgentSettings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def configured(self) -> bool:
        return self.settings.configured

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        timeout = httpx.Timeout(self.settings.timeout_seconds, connect=8.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            yield client

    async def stream_chat(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float,
    ) -> AsyncGenerator[DeltaChunk, None]:
        if not self.configured:
            raise ModelBackendError("Model backend API key is not configured.")

        payload: dict[str, Any] = {
            "model": self.settings.model,
            "messages": messages,
            "stream": True,
            "temperature": temperature,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }
        url = f"{self.settings.base_url}/chat/completions"

        try:
            async with self._client_scope() as client:
                async with client.stream("POST", url, headers=headers, json=payload) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ModelBackendError(provider_error_message(response.status_code, body))
                    async for raw_line in response.aiter_lines():
                        line = raw_line.strip()
                        if not line.startswith("data:"):
                            continue
                        data = line[5:].strip()
                        if data == "[DONE]":
                            return
                        try:
                            event = json.loads(data)
                        except json.JSONDecodeError:
                            logger.warning("skipping malformed stream line: %s", data[:200])
                            continue
                        if not isinstance(event, dict):
                            continue
                        if event.get("error"):
                            raise ModelBackendError(provider_error_message(response.status_code, data))
                        chunk = chunk_from_payload(event)
                        if chunk is not None:
                            yield chunk
        except httpx.HTTPError as exc:
            raise ModelBackendError(f"Model backend request failed: {exc}") from exc
