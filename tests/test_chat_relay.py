"""Tests for the chat stream relay against a fake CLI subprocess."""

from __future__ import annotations

import json
from datetime import date

import pytest

from conftest import text_delta, thinking_delta
from models.chat import ChatMessage, ChatRequest, DoneEvent, ErrorEvent, ModeEvent, TokenEvent
from models.context import SelectionContext, WriterContext
from models.definitions import SkillContext, SkillDefinition
from services.chat_relay import (
    ASK_MODE_PLACEHOLDER,
    ChatStreamRelay,
    RelayState,
    extract_code_blocks,
    strip_code_blocks,
)
from services.context_relay import WriterContextStore
from services.errors import ValidationError
from services.skill_loader import DefinitionRegistry


def _relay(settings, registry, memory, bridge=None, cli_path=None, context_store=None) -> ChatStreamRelay:
    cfg = dict(settings)
    cfg["cli"] = {**settings["cli"], "path": str(cli_path or settings["cli"]["path"])}
    return ChatStreamRelay(cfg, registry, memory, bridge=bridge, context_store=context_store)


def _request(text: str = "hello", **kwargs) -> ChatRequest:
    return ChatRequest(messages=[ChatMessage(role="user", content=text)], **kwargs)


async def _collect(session) -> list:
    return [event async for event in session.events()]


class TestOpen:
    def test_empty_messages_rejected(self, settings, registry, memory):
        relay = _relay(settings, registry, memory)
        with pytest.raises(ValidationError):
            relay.open(ChatRequest(messages=[]))

    def test_unknown_model_falls_back(self, settings, registry, memory):
        relay = _relay(settings, registry, memory)
        assert relay.open(_request(model="gpt-5")).model == "claude-sonnet-4-6"
        assert relay.open(_request(model="claude-opus-4-6")).model == "claude-opus-4-6"

    def test_command_line(self, settings, registry, memory):
        relay = _relay(settings, registry, memory, cli_path="/opt/bin/claude")
        command = relay.open(_request(webSearch=True)).command
        assert command[:2] == ["/opt/bin/claude", "-p"]
        assert command[command.index("--output-format") + 1] == "stream-json"
        assert "--include-partial-messages" in command
        assert command[command.index("--max-turns") + 1] == "5"
        assert command[-2:] == ["--allowedTools", "WebSearch"]

    def test_max_turns_per_mode(self, settings, registry, memory):
        relay = _relay(settings, registry, memory)
        ask = relay.open(_request(mode="ask")).command
        assert ask[ask.index("--max-turns") + 1] == "1"
        auto = relay.open(_request(mode="auto")).command
        assert auto[auto.index("--max-turns") + 1] == "2"

    def test_unknown_mode_uses_agent_definition(self, settings, registry, memory):
        session = _relay(settings, registry, memory).open(_request(mode="review"))
        assert session.mode == "review"
        assert "AGENT MODE BODY" in session.prompt

    def test_prompt_includes_preferences_and_matches(self, settings, registry, memory):
        memory.update({"preferences": {"language": "English"}})
        session = _relay(settings, registry, memory).open(
            _request("draw a table", context="Document: a.docx"), today=date(2026, 1, 2)
        )
        assert [s.id for s in session.matched] == ["style-guide", "table-format"]
        assert "- language: English" in session.prompt
        assert "Today's date is 2026-01-02." in session.prompt
        assert session.prompt.endswith("User: draw a table")

    def test_connectors_and_context_predicates(self, settings, memory):
        registry = DefinitionRegistry(
            connectors={
                "selection-helper": SkillDefinition(
                    id="selection-helper",
                    name="selection-helper",
                    context=SkillContext(has_selection=True),
                    body="SELECTION CONNECTOR",
                )
            }
        )
        store = WriterContextStore()
        relay = _relay(settings, registry, memory, context_store=store)
        assert relay.open(_request()).matched == []

        store.update(
            WriterContext(document_name="a.docx", selection=SelectionContext(has_selection=True))
        )
        session = relay.open(_request())
        assert [s.id for s in session.matched] == ["selection-helper"]
        assert "SELECTION CONNECTOR" in session.prompt


class TestStreaming:
    @pytest.mark.asyncio
    async def test_tokens_then_done(self, settings, registry, memory, fake_cli):
        script = fake_cli(
            [
                "verbose diagnostic line",
                {"type": "system", "subtype": "init"},
                thinking_delta("Considering..."),
                text_delta("Hello"),
                text_delta(", world  "),
                {"type": "result", "result": "ignored because deltas arrived"},
            ]
        )
        session = _relay(settings, registry, memory, cli_path=script).open(
            _request("hi there", model="nope")
        )

        events = await _collect(session)

        assert [e.type for e in events] == ["mode", "thinking", "token", "token", "done"]
        assert events[0] == ModeEvent(mode="agent", enforcement=events[0].enforcement)
        assert [e.text for e in events if isinstance(e, TokenEvent)] == ["Hello", ", world  "]
        assert events[-1].full_text == "Hello, world"
        assert session.thinking_text == "Considering..."
        assert session.state == RelayState.DONE

        invocation = json.loads(fake_cli.record.read_text())
        assert invocation["argv"][invocation["argv"].index("--model") + 1] == "claude-sonnet-4-6"
        assert invocation["prompt"].endswith("User: hi there")

    @pytest.mark.asyncio
    async def test_result_used_when_no_deltas(self, settings, registry, memory, fake_cli):
        script = fake_cli([{"type": "result", "result": "  Final answer\n"}])
        events = await _collect(_relay(settings, registry, memory, cli_path=script).open(_request()))
        assert [e.type for e in events] == ["mode", "done"]
        assert events[-1].full_text == "Final answer"

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_output_is_error(self, settings, registry, memory, fake_cli):
        script = fake_cli([], exit_code=1, stderr="Not logged in\n")
        session = _relay(settings, registry, memory, cli_path=script).open(_request())

        events = await _collect(session)

        assert [e.type for e in events] == ["mode", "error"]
        assert not any(isinstance(e, DoneEvent) for e in events)
        assert "code=1" in events[-1].message
        assert session.state == RelayState.ERRORED

    @pytest.mark.asyncio
    async def test_nonzero_exit_with_output_is_done(self, settings, registry, memory, fake_cli):
        script = fake_cli([text_delta("partial answer")], exit_code=2)
        events = await _collect(_relay(settings, registry, memory, cli_path=script).open(_request()))
        assert events[-1] == DoneEvent(full_text="partial answer", code_blocks=[])

    @pytest.mark.asyncio
    async def test_spawn_failure(self, settings, registry, memory, tmp_path):
        session = _relay(settings, registry, memory, cli_path=tmp_path / "no-such-cli").open(_request())

        events = await _collect(session)

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert "Cannot start claude CLI" in events[0].message
        assert session.state == RelayState.ERRORED

    @pytest.mark.asyncio
    async def test_abort_kills_subprocess(self, settings, registry, memory, fake_cli):
        script = fake_cli([text_delta("first")], hang=30)
        session = _relay(settings, registry, memory, cli_path=script).open(_request())

        stream = session.events()
        assert (await stream.__anext__()).type == "mode"
        assert (await stream.__anext__()).type == "token"
        await stream.aclose()

        assert session.state == RelayState.ABORTED
        returncode = await session.process.wait()
        assert returncode != 0

    @pytest.mark.asyncio
    async def test_code_blocks_listed_in_agent_mode(self, settings, registry, memory, bridge, fake_cli):
        text = "Done.\n```javascript\nvar d = Application.ActiveDocument;\nreturn d.Name;\n```"
        script = fake_cli([text_delta(text)])
        events = await _collect(
            _relay(settings, registry, memory, bridge=bridge, cli_path=script).open(_request())
        )

        done = events[-1]
        assert [b.code for b in done.code_blocks] == ["var d = Application.ActiveDocument;\nreturn d.Name;"]
        assert done.code_blocks[0].task_id is None
        assert bridge.pending_count() == 0

    @pytest.mark.asyncio
    async def test_auto_execute_submits_to_bridge(self, settings, registry, memory, bridge, fake_cli):
        script = fake_cli([text_delta("```js\nreturn 1+1\n```")])
        events = await _collect(
            _relay(settings, registry, memory, bridge=bridge, cli_path=script).open(_request(mode="auto"))
        )

        block = events[-1].code_blocks[0]
        task = bridge.poll_pending()
        assert task is not None
        assert task.id == block.task_id
        assert task.code == "return 1+1"

    @pytest.mark.asyncio
    async def test_auto_execute_submits_only_first_block(
        self, settings, registry, memory, bridge, fake_cli
    ):
        text = "Step one:\n```js\nthrow new Error('x')\n```\nStep two:\n```js\nreturn 2\n```"
        script = fake_cli([text_delta(text)])
        events = await _collect(
            _relay(settings, registry, memory, bridge=bridge, cli_path=script).open(_request(mode="auto"))
        )

        first, second = events[-1].code_blocks
        assert bridge.pending_count() == 1
        assert bridge.poll_pending().id == first.task_id
        assert second.code == "return 2"
        assert second.task_id is None

    @pytest.mark.asyncio
    async def test_ask_mode_strips_code(self, settings, registry, memory, bridge, fake_cli):
        script = fake_cli([text_delta("Here is how:\n```js\nreturn 1\n```\nThat is all.")])
        events = await _collect(
            _relay(settings, registry, memory, bridge=bridge, cli_path=script).open(_request(mode="ask"))
        )

        done = events[-1]
        assert "```" not in done.full_text
        assert ASK_MODE_PLACEHOLDER in done.full_text
        assert done.suggest_agent_switch is True
        assert done.code_blocks is None
        assert events[0].enforcement["codeBridge"] is False
        assert bridge.pending_count() == 0

    @pytest.mark.asyncio
    async def test_done_frame_serialisation(self, settings, registry, memory, fake_cli):
        script = fake_cli([text_delta("plain answer")])
        events = await _collect(
            _relay(settings, registry, memory, cli_path=script).open(_request(mode="ask"))
        )
        payload = json.loads(events[-1].model_dump_json(by_alias=True, exclude_none=True))
        assert payload == {"type": "done", "fullText": "plain answer", "suggestAgentSwitch": False}


class TestCompletionHelpers:
    def test_strip_without_code_or_hint(self):
        assert strip_code_blocks("Just prose.") == ("Just prose.", False)

    def test_action_hint_without_code(self):
        text, suggest = strip_code_blocks("You should switch to Agent mode to apply this.")
        assert suggest is True
        assert text == "You should switch to Agent mode to apply this."

    def test_extract_code_blocks_default_language(self):
        blocks = extract_code_blocks("```\nreturn 1\n```\n```python\nprint(1)\n```")
        assert [(b.language, b.code) for b in blocks] == [("javascript", "return 1"), ("python", "print(1)")]
