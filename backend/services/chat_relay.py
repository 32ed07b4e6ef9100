"""
Chat Stream Relay - one model CLI subprocess per chat request

A request moves through ``idle -> streaming -> done | errored | aborted``.
The prompt is written to the CLI's stdin once, stdout is decoded as
stream-json and every recognised delta is forwarded as an SSE frame. Exactly
one ``done`` or ``error`` frame ends a request unless the client goes away
first, in which case the subprocess is killed and nothing more is sent.
"""

from __future__ import annotations

import asyncio
import logging
import re
import signal
import uuid
from collections.abc import AsyncIterator
from datetime import date
from typing import Any

from pydantic import BaseModel

from models.chat import (
    ChatRequest,
    CodeBlock,
    DoneEvent,
    ErrorEvent,
    ModeEvent,
    ThinkingEvent,
    TokenEvent,
)
from models.definitions import ModeEnforcement, SkillDefinition

from .cli_events import CliEvent, FinalResult, TextDelta, ThinkingDelta, classify
from .code_bridge import CodeExecutionBridge
from .context_relay import WriterContextStore
from .errors import UpstreamProcessError, ValidationError
from .line_decoder import JsonLineDecoder
from .memory_store import PreferenceStore
from .prompt_composer import PromptComposer
from .skill_loader import DefinitionRegistry
from .skill_matcher import match_skills

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024

CODE_FENCE_PATTERN = re.compile(r"```[\w]*\n[\s\S]*?```")
CODE_BLOCK_PATTERN = re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL)
ACTION_HINT_PATTERN = re.compile(
    r"switch.{0,6}agent|agent mode|needs? to (?:be )?(?:execute|run|modif)|切换.{0,4}Agent|需要执行|需要操作|建议.{0,4}Agent",
    re.IGNORECASE,
)
ASK_MODE_PLACEHOLDER = "_(Code operation omitted; switch to Agent mode to run it)_"


class RelayState:
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"
    ABORTED = "aborted"


def extract_code_blocks(content: str) -> list[CodeBlock]:
    """Extract code blocks from markdown response"""
    return [
        CodeBlock(language=lang or "javascript", code=code.strip())
        for lang, code in CODE_BLOCK_PATTERN.findall(content)
    ]


def strip_code_blocks(text: str) -> tuple[str, bool]:
    """Replace fenced code with a placeholder; also report whether to suggest agent mode"""
    stripped = CODE_FENCE_PATTERN.sub(ASK_MODE_PLACEHOLDER, text)
    had_code = stripped != text
    return stripped, had_code or bool(ACTION_HINT_PATTERN.search(text))


class ChatStreamRelay:
    """Turns chat requests into CLI subprocess sessions"""

    def __init__(
        self,
        config: dict[str, Any],
        registry: DefinitionRegistry,
        preferences: PreferenceStore,
        bridge: CodeExecutionBridge | None = None,
        context_store: WriterContextStore | None = None,
        composer: PromptComposer | None = None,
    ):
        cli = config.get("cli", {})
        self.cli_path = cli.get("path", "claude")
        self.default_model = cli.get("defaultModel", "claude-sonnet-4-6")
        self.allowed_models = set(cli.get("allowedModels", [self.default_model]))
        self.default_max_turns = int(cli.get("defaultMaxTurns", 5))
        self.ask_max_turns = int(cli.get("askMaxTurns", 1))
        self.keepalive_seconds = float(config.get("stream", {}).get("keepaliveSeconds", 5))

        self.registry = registry
        self.preferences = preferences
        self.bridge = bridge
        self.context_store = context_store
        self.composer = composer or PromptComposer()

    def resolve_model(self, model: str | None) -> str:
        return model if model in self.allowed_models else self.default_model

    def open(self, request: ChatRequest, today: date | None = None) -> "ChatSession":
        """Validate a request and prepare its session; nothing is spawned yet"""
        if not request.messages:
            raise ValidationError("messages must not be empty")

        model = self.resolve_model(request.model)
        mode, mode_definition = self.registry.resolve_mode(request.mode)
        enforcement = mode_definition.enforcement if mode_definition else ModeEnforcement()

        last_message = request.messages[-1].content
        writer_context = self.context_store.current() if self.context_store else None
        matched = match_skills(self.registry.skills, last_message, writer_context, mode)
        matched += match_skills(self.registry.connectors, last_message, writer_context, mode)

        prompt = self.composer.compose(
            request.messages,
            today=today or date.today(),
            mode_definition=mode_definition,
            matched=matched,
            preferences=self.preferences.preferences(),
            context=request.context,
            attachments=request.attachments,
        )

        if enforcement.max_turns:
            max_turns = enforcement.max_turns
        elif mode == "ask":
            max_turns = self.ask_max_turns
        else:
            max_turns = self.default_max_turns

        command = [
            self.cli_path,
            "-p",
            "--verbose",
            "--output-format",
            "stream-json",
            "--include-partial-messages",
            "--max-turns",
            str(max_turns),
            "--model",
            model,
        ]
        if request.web_search:
            command += ["--allowedTools", "WebSearch"]

        logger.info(
            "Chat request: model=%s mode=%s skills=[%s] prompt=%d chars",
            model,
            mode,
            ", ".join(s.id for s in matched),
            len(prompt),
        )
        return ChatSession(
            command=command,
            prompt=prompt,
            model=model,
            mode=mode,
            enforcement=enforcement,
            matched=matched,
            bridge=self.bridge,
        )


class ChatSession:
    """State of one streaming request; never shared between requests"""

    def __init__(
        self,
        command: list[str],
        prompt: str,
        model: str,
        mode: str,
        enforcement: ModeEnforcement,
        matched: list[SkillDefinition] | None = None,
        bridge: CodeExecutionBridge | None = None,
    ):
        self.id = uuid.uuid4().hex[:8]
        self.command = command
        self.prompt = prompt
        self.model = model
        self.mode = mode
        self.enforcement = enforcement
        self.matched = matched or []
        self.bridge = bridge

        self.state = RelayState.IDLE
        self.result_text = ""
        self.thinking_text = ""
        self.token_count = 0
        self.process: asyncio.subprocess.Process | None = None

    async def events(self) -> AsyncIterator[BaseModel]:
        """Run the CLI and yield stream frames until a terminal frame"""
        self.state = RelayState.STREAMING
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            error = UpstreamProcessError(f"Cannot start claude CLI: {e}")
            logger.error("[%s] %s", self.id, error.message)
            self.state = RelayState.ERRORED
            yield ErrorEvent(message=error.message)
            return

        proc = self.process
        stderr_task = asyncio.create_task(self._drain_stderr(proc.stderr))
        try:
            yield ModeEvent(mode=self.mode, enforcement=self.enforcement.model_dump(by_alias=True))

            await self._write_prompt(proc)

            decoder = JsonLineDecoder()
            while True:
                chunk = await proc.stdout.read(READ_CHUNK)
                if not chunk:
                    break
                for payload in decoder.feed(chunk):
                    frame = self.dispatch(classify(payload))
                    if frame is not None:
                        yield frame
            for payload in decoder.flush():
                frame = self.dispatch(classify(payload))
                if frame is not None:
                    yield frame

            returncode = await proc.wait()
            await stderr_task
            yield self.finish(returncode)
        finally:
            if self.state == RelayState.STREAMING:
                self.abort()
            if not stderr_task.done():
                stderr_task.cancel()

    def dispatch(self, event: CliEvent) -> BaseModel | None:
        """Apply one upstream event to the buffers and return the frame to send"""
        match event:
            case TextDelta(text=text):
                self.result_text += text
                self.token_count += 1
                return TokenEvent(text=text)
            case ThinkingDelta(text=text):
                self.thinking_text += text
                return ThinkingEvent(text=text)
            case FinalResult(text=text):
                if not self.result_text:
                    self.result_text = text
                return None
            case _:
                return None

    def finish(self, returncode: int) -> BaseModel:
        """Build the terminal frame for a CLI exit status"""
        if returncode != 0 and not self.result_text:
            code, sig = returncode, None
            if returncode < 0:
                code, sig = None, _signal_name(-returncode)
            error = UpstreamProcessError(
                f"claude CLI exited (code={code}, signal={sig}); "
                "make sure it is logged in by running `claude`",
                returncode=code,
                signal=sig,
            )
            logger.error("[%s] %s", self.id, error.message)
            self.state = RelayState.ERRORED
            return ErrorEvent(message=error.message)

        self.state = RelayState.DONE
        logger.info(
            "[%s] Completed: %d tokens, %d chars, exit=%s",
            self.id,
            self.token_count,
            len(self.result_text),
            returncode,
        )
        return self.build_done_event(self.result_text.strip())

    def build_done_event(self, text: str) -> DoneEvent:
        if self.mode == "ask" or self.enforcement.strip_code_blocks:
            stripped, suggest = strip_code_blocks(text)
            return DoneEvent(full_text=stripped, suggest_agent_switch=suggest)

        if not self.enforcement.code_bridge:
            return DoneEvent(full_text=text)

        blocks = [block for block in extract_code_blocks(text) if block.code]
        if self.enforcement.auto_execute and self.bridge is not None and blocks:
            # Only the first block is queued; the rest run after it succeeds
            first = blocks[0]
            blocks[0] = first.model_copy(update={"task_id": self.bridge.submit(first.code)})
        return DoneEvent(full_text=text, code_blocks=blocks)

    def abort(self) -> None:
        """Client went away: kill the CLI and send nothing more"""
        self.state = RelayState.ABORTED
        if self.process is not None and self.process.returncode is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
            logger.info("[%s] Aborted by client, killed pid %s", self.id, self.process.pid)

    async def _write_prompt(self, proc: asyncio.subprocess.Process) -> None:
        try:
            proc.stdin.write(self.prompt.encode("utf-8"))
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            logger.warning("[%s] CLI closed stdin early: %s", self.id, e)
        finally:
            proc.stdin.close()

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        async for line in stream:
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.warning("[%s] claude stderr: %s", self.id, text)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)
