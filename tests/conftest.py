"""Shared pytest fixtures for the relay tests."""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path
from textwrap import dedent

# Keep the module-level app from touching the user's real config directory
os.environ.setdefault("WPS_RELAY_CONFIG_DIR", tempfile.mkdtemp(prefix="wps-relay-test-"))
os.environ.pop("CLAUDE_PATH", None)

import pytest

from models.definitions import ModeEnforcement, SkillContext, SkillDefinition
from services.code_bridge import CodeExecutionBridge
from services.config_manager import ConfigManager
from services.memory_store import PreferenceStore
from services.skill_loader import DefinitionRegistry


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bridge(clock: FakeClock) -> CodeExecutionBridge:
    return CodeExecutionBridge(result_ttl=60, clock=clock)


@pytest.fixture
def registry() -> DefinitionRegistry:
    """Agent, plan and ask modes plus two bundled skills"""
    return DefinitionRegistry(
        skills={
            "style-guide": SkillDefinition(
                id="style-guide",
                name="style-guide",
                context=SkillContext(always=True),
                body="STYLE GUIDE BODY",
            ),
            "table-format": SkillDefinition(
                id="table-format",
                name="table-format",
                modes=["agent"],
                context=SkillContext(keywords=["Table"]),
                body="TABLE BODY",
            ),
        },
        modes={
            "agent": SkillDefinition(
                id="agent", name="Agent", body="AGENT MODE BODY", default=True
            ),
            "ask": SkillDefinition(
                id="ask",
                name="Ask",
                body="ASK MODE BODY",
                enforcement=ModeEnforcement(code_bridge=False, strip_code_blocks=True, max_turns=1),
            ),
            "auto": SkillDefinition(
                id="auto",
                name="Auto",
                enforcement=ModeEnforcement(auto_execute=True, max_turns=2),
            ),
        },
    )


@pytest.fixture
def memory(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "memory.json")


@pytest.fixture
def settings(tmp_path: Path) -> dict:
    """Relay configuration pointing at temporary resources"""
    skills_dir = tmp_path / "skills"
    mode_dir = skills_dir / "modes" / "agent"
    mode_dir.mkdir(parents=True)
    (mode_dir / "SKILL.md").write_text(
        dedent("""
        ---
        name: Agent
        default: true
        enforcement:
          maxTurns: 5
        ---
        AGENT MODE BODY
    """).strip(),
        encoding="utf-8",
    )
    commands_dir = tmp_path / "commands"
    commands_dir.mkdir()
    (commands_dir / "polish.md").write_text(
        "---\nlabel: Polish\nscope: writer\n---\nPolish the selection.\n", encoding="utf-8"
    )

    cfg = ConfigManager.get_instance().get_config()
    cfg["skillsDir"] = str(skills_dir)
    cfg["commandsDir"] = str(commands_dir)
    cfg["memoryFile"] = str(tmp_path / "memory.json")
    cfg["cli"]["path"] = str(tmp_path / "missing-claude")
    return cfg


@pytest.fixture
def fake_cli(tmp_path: Path):
    """
    Factory writing an executable stand-in for the claude CLI.

    The script records its argv, stdin and pid to ``invocation.json``, prints
    ``lines`` to stdout, optionally hangs, then exits with ``exit_code``.
    """

    record = tmp_path / "invocation.json"

    def make(lines: list, exit_code: int = 0, stderr: str = "", hang: float = 0.0) -> Path:
        out = [line if isinstance(line, str) else json.dumps(line) for line in lines]
        script = tmp_path / "fake-claude"
        script.write_text(
            dedent(f"""\
            #!{sys.executable}
            import json, os, sys, time
            prompt = sys.stdin.read()
            with open({str(record)!r}, "w") as f:
                json.dump({{"argv": sys.argv[1:], "prompt": prompt, "pid": os.getpid()}}, f)
            for line in {out!r}:
                sys.stdout.write(line + "\\n")
                sys.stdout.flush()
            sys.stderr.write({stderr!r})
            sys.stderr.flush()
            time.sleep({hang!r})
            sys.exit({exit_code!r})
            """),
            encoding="utf-8",
        )
        script.chmod(0o755)
        return script

    make.record = record
    return make


def text_delta(text: str) -> dict:
    return {
        "type": "stream_event",
        "event": {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}},
    }


def thinking_delta(text: str) -> dict:
    return {
        "type": "stream_event",
        "event": {
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "thinking_delta", "thinking": text},
        },
    }
