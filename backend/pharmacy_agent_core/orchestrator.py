"""Streaming, tool-augmented conversation loop.

One call to ``ConversationOrchestrator.process_message`` is one turn. The turn
either takes the safety redirect (model phrases a referral, no tools) or enters
the tool loop: stream a model reply, rebuild at most one tool call from its
fragments, execute it, feed the result back and ask the model again. Every turn
ends with exactly one ``done`` or ``error`` event.

At most one tool call per model reply is supported. Fragments that belong to a
second, differently identified call in the same reply are ignored (and logged);
the model is expected to issue calls one at a time, and list-valued arguments
cover the multi-item case.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import aclosing
from enum import Enum
from typing import Any, AsyncGenerator, Mapping, Sequence

from .executor import ToolExecutor
from .llm_client import ChatBackend, ModelBackendError
from .models import (
    ConversationMessage,
    DoneEvent,
    ErrorEvent,
    OutputEvent,
    SafetyVerdict,
    TextEvent,
    ToolCallEvent,
    ToolCallFragment,
    ToolCallRecord,
    ToolResultEvent,
)
from .prompts import ITERATION_LIMIT_NOTICE, REDIRECT_INSTRUCTION, REDIRECT_LANGUAGE_NAMES, SYSTEM_PROMPT
from .registry import ToolRegistry
from .safety import SAFETY_REDIRECT_REASON, SafetyClassifierProtocol
from .settings import AgentSettings


logger = logging.getLogger(__name__)

_HISTORY_ROLES = {"user", "assistant"}


class TurnState(str, Enum):
    REDIRECTING = "redirecting"
    AWAITING_MODEL_TURN = "awaiting_model_turn"
    STREAMING_DELTA = "streaming_delta"
    EXECUTING_TOOL = "executing_tool"
    DONE = "done"
    ABORTED = "aborted"


class ArgumentParseError(Exception):
    pass


def parse_tool_arguments(raw: str) -> dict[str, Any]:
    text = (raw or "").strip()
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ArgumentParseError(f"Tool arguments are not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ArgumentParseError("Tool arguments must be a JSON object")
    return parsed


class ToolCallAssembler:
    """Rebuilds the single tool call of one model reply from streamed fragments."""

    def __init__(self) -> None:
        self.record: ToolCallRecord | None = None
        self._id_from_stream = False
        self.ignored: list[ToolCallFragment] = []

    def merge(self, fragment: ToolCallFragment) -> bool:
        if self.record is None:
            self._id_from_stream = fragment.id is not None
            self.record = ToolCallRecord(
                id=fragment.id or f"call_{uuid.uuid4().hex[:24]}",
                name=fragment.function_name or "",
                arguments_raw=fragment.arguments_fragment or "",
                index=fragment.index,
            )
            return True

        if not self._belongs(fragment):
            self.ignored.append(fragment)
            return False

        if fragment.id is not None and not self._id_from_stream:
            self.record.id = fragment.id
            self._id_from_stream = True
        if fragment.function_name and not self.record.name:
            self.record.name = fragment.function_name
        self.record.arguments_raw += fragment.arguments_fragment or ""
        return True

    def _belongs(self, fragment: ToolCallFragment) -> bool:
        record = self.record
        if fragment.index is not None and record.index is not None and fragment.index != record.index:
            return False
        if fragment.id is not None and self._id_from_stream:
            return fragment.id == record.id
        return True


class ConversationOrchestrator:
    def __init__(
        self,
        *,
        backend: ChatBackend,
        registry: ToolRegistry,
        executor: ToolExecutor,
        classifier: SafetyClassifierProtocol,
        settings: AgentSettings,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.backend = backend
        self.registry = registry
        self.executor = executor
        self.classifier = classifier
        self.settings = settings
        self.system_prompt = system_prompt

    async def process_message(
        self,
        message: str,
        user_id: int,
        history: Sequence[Mapping[str, Any]] | None = None,
    ) -> AsyncGenerator[OutputEvent, None]:
        logger.info("processing message user=%s chars=%s", user_id, len(message or ""))
        verdict = self.classifier.classify(message)
        if verdict.redirect:
            turn = self._stream_redirect(verdict)
        else:
            turn = self._run_tool_loop(self.seed_history(message, history), user_id)
        try:
            async with aclosing(turn):
                async for event in turn:
                    yield event
        except ModelBackendError as exc:
            logger.error("model backend failure user=%s: %s", user_id, exc)
            yield ErrorEvent(error=str(exc))

    def seed_history(
        self,
        message: str,
        history: Sequence[Mapping[str, Any]] | None,
    ) -> list[ConversationMessage]:
        seeded = [ConversationMessage(role="system", content=self.system_prompt)]
        for turn in history or []:
            role = str(turn.get("role") or "").strip().lower()
            content = turn.get("content")
            if role not in _HISTORY_ROLES or not isinstance(content, str) or not content.strip():
                continue
            seeded.append(ConversationMessage(role=role, content=content))
        seeded.append(ConversationMessage(role="user", content=message))
        return seeded

    async def _stream_redirect(self, verdict: SafetyVerdict) -> AsyncGenerator[OutputEvent, None]:
        reason = verdict.reason or SAFETY_REDIRECT_REASON
        # The question itself is withheld from the model; only the reply language is passed.
        language = REDIRECT_LANGUAGE_NAMES.get(verdict.language or "en", "English")
        logger.info("safety redirect category=%s language=%s", verdict.category, verdict.language)
        self._transition(TurnState.REDIRECTING)
        messages = [
            ConversationMessage(role="system", content=self.system_prompt),
            ConversationMessage(role="user", content=REDIRECT_INSTRUCTION.format(reason=reason, language=language)),
        ]
        stream = self.backend.stream_chat(
            [item.as_payload() for item in messages],
            tools=None,
            temperature=self.settings.redirect_temperature,
        )
        async with aclosing(stream):
            async for chunk in stream:
                if chunk.text:
                    yield TextEvent(data=chunk.text)
        self._transition(TurnState.DONE)
        yield DoneEvent()

    async def _run_tool_loop(
        self,
        history: list[ConversationMessage],
        user_id: int,
    ) -> AsyncGenerator[OutputEvent, None]:
        tools = self.registry.as_payload()
        for iteration in range(1, self.settings.max_iterations + 1):
            logger.info("agent iteration %s user=%s", iteration, user_id)
            self._transition(TurnState.AWAITING_MODEL_TURN)
            assembler = ToolCallAssembler()
            text_parts: list[str] = []

            stream = self.backend.stream_chat(
                [item.as_payload() for item in history],
                tools=tools,
                temperature=self.settings.tool_temperature,
            )
            self._transition(TurnState.STREAMING_DELTA)
            async with aclosing(stream):
                async for chunk in stream:
                    if chunk.text:
                        text_parts.append(chunk.text)
                        yield TextEvent(data=chunk.text)
                    for fragment in chunk.tool_calls:
                        if not assembler.merge(fragment) or not assembler.record.name:
                            continue
                        yield ToolCallEvent(name=assembler.record.name, arguments=assembler.record.arguments_raw)

            if assembler.ignored:
                logger.warning(
                    "ignored %s fragment(s) of an additional tool call; only one call per reply is executed",
                    len(assembler.ignored),
                )

            call = assembler.record
            if call is None or not call.name:
                self._transition(TurnState.DONE)
                yield DoneEvent()
                return

            self._transition(TurnState.EXECUTING_TOOL)
            try:
                args = parse_tool_arguments(call.arguments_raw)
            except ArgumentParseError as exc:
                logger.error("aborting turn: %s raw=%r", exc, call.arguments_raw[:500])
                self._transition(TurnState.ABORTED)
                yield ErrorEvent(error=f"Could not read the arguments of tool call '{call.name}'.")
                return

            args = self._inject_context(call.name, args, user_id)
            logger.info("executing tool %s arguments=%s", call.name, json.dumps(args, ensure_ascii=False))
            result = self.executor.execute(call.name, args)
            if result.error_kind == "transport":
                self._transition(TurnState.ABORTED)
                yield ErrorEvent(error=result.error or "Data store unavailable.")
                return

            yield ToolResultEvent(name=call.name, result=result.as_envelope())
            history.append(
                ConversationMessage(role="assistant", content="".join(text_parts) or None, tool_calls=[call])
            )
            history.append(ConversationMessage(role="tool", content=result.to_json(), tool_call_id=call.id))

        logger.warning("max iterations (%s) reached user=%s", self.settings.max_iterations, user_id)
        yield TextEvent(data=ITERATION_LIMIT_NOTICE)
        self._transition(TurnState.DONE)
        yield DoneEvent()

    def _inject_context(self, tool_name: str, args: dict[str, Any], user_id: int) -> dict[str, Any]:
        declaration = self.registry.get(tool_name)
        if declaration is None or not declaration.injected_params:
            return args
        context = {"user_id": user_id}
        final_args = dict(args)
        for param in declaration.injected_params:
            if param not in context:
                continue
            supplied = final_args.get(param)
            if supplied is not None and supplied != context[param]:
                logger.warning("replacing model-supplied %s for %s with session value", param, tool_name)
            final_args[param] = context[param]
        return final_args

    @staticmethod
    def _transition(state: TurnState) -> None:
        logger.debug("turn state -> %s", state.value)
