from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from pharmacy_agent_core import AgentSettings, DeltaChunk, ModelBackendError, OpenAICompatibleBackend
from pharmacy_agent_core.llm_client import chunk_from_payload, provider_error_message


def _sse(*payloads: object) -> bytes:
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    return "".join(lines).encode("utf-8")


def _collect(backend: OpenAICompatibleBackend, *, tools=None, temperature: float = 0.4) -> list[DeltaChunk]:
    async def _run() -> list[DeltaChunk]:
        stream = backend.stream_chat([{"role": "user", "content": "hi"}], tools=tools, temperature=temperature)
        return [chunk async for chunk in stream]

    return asyncio.run(_run())


def _backend(handler, **settings) -> OpenAICompatibleBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleBackend(AgentSettings(api_key="sk-test", **settings), client=client)


def test_stream_parses_text_and_tool_fragments():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        body = _sse(
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": [{"delta": {"content": "Checking"}}]},
            {
                "choices": [
                    {
                        "delta": {
                            "tool_calls": [
                                {
                                    "index": 0,
                                    "id": "call_1",
                                    "type": "function",
                                    "function": {"name": "lookup_medication", "arguments": '{"na'},
                                }
                            ]
                        }
                    }
                ]
            },
            {"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": 'me": "Aspirin"}'}}]}}]},
            "[DONE]",
            {"choices": [{"delta": {"content": "after done"}}]},
        )
        return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

    tools = [{"type": "function", "function": {"name": "lookup_medication", "parameters": {}}}]
    chunks = _collect(_backend(handler, base_url="https://llm.example/v1", model="gpt-test"), tools=tools)

    assert captured["url"] == "https://llm.example/v1/chat/completions"
    assert captured["auth"] == "Bearer sk-test"
    assert captured["body"]["model"] == "gpt-test"
    assert captured["body"]["stream"] is True
    assert captured["body"]["tools"] == tools
    assert captured["body"]["tool_choice"] == "auto"

    assert chunks[0] == DeltaChunk(text="Checking")
    first, second = chunks[1].tool_calls[0], chunks[2].tool_calls[0]
    assert (first.id, first.function_name, first.arguments_fragment, first.index) == (
        "call_1",
        "lookup_medication",
        '{"na',
        0,
    )
    assert (second.id, second.function_name, second.arguments_fragment) == (None, None, 'me": "Aspirin"}')
    assert len(chunks) == 3


def test_no_tools_means_no_tool_choice():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, content=_sse({"choices": [{"delta": {"content": "ok"}}]}, "[DONE]"))

    chunks = _collect(_backend(handler), temperature=0.7)
    assert chunks == [DeltaChunk(text="ok")]
    assert "tools" not in captured["body"]
    assert "tool_choice" not in captured["body"]
    assert captured["body"]["temperature"] == 0.7


def test_malformed_lines_are_skipped():
    def handler(request: httpx.Request) -> httpx.Response:
        body = b": keep-alive\n\ndata: {broken\n\n" + _sse({"choices": [{"delta": {"content": "fine"}}]}, "[DONE]")
        return httpx.Response(200, content=body)

    assert _collect(_backend(handler)) == [DeltaChunk(text="fine")]


def test_http_error_surfaces_provider_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    with pytest.raises(ModelBackendError, match="Incorrect API key provided"):
        _collect(_backend(handler))


def test_error_payload_mid_stream_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse({"error": {"message": "overloaded"}}))

    with pytest.raises(ModelBackendError, match="overloaded"):
        _collect(_backend(handler))


def test_transport_failure_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ModelBackendError, match="request failed"):
        _collect(_backend(handler))


def test_unconfigured_backend_refuses_to_stream():
    backend = OpenAICompatibleBackend(AgentSettings(api_key=""))
    assert backend.configured is False
    with pytest.raises(ModelBackendError, match="not configured"):
        _collect(backend)


def test_provider_error_message_fallbacks():
    assert provider_error_message(500, "") == "HTTP 500"
    assert provider_error_message(502, "Bad gateway") == "Bad gateway"
    assert provider_error_message(400, '{"message": "bad request"}') == "bad request"


def test_chunk_from_payload_ignores_empty_deltas():
    assert chunk_from_payload({"choices": []}) is None
    assert chunk_from_payload({"choices": [{"delta": {"content": ""}}]}) is None
    assert chunk_from_payload({"choices": [{"delta": {"content": "x"}}]}) == DeltaChunk(text="x")
