"""Shared test fixtures and utilities for stax-security tests.

Provides:
- Host key factory producing SSH wire-format blobs
- ScriptedConfirmer that records prompts and replays answers
- FakeExecutor standing in for a remote shell
- Isolated settings pointing at a temporary app directory
"""

import os
import struct
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from stax_security.config import SettingsContext, StaxSettings
from stax_security.trust import HostKey, TrustPrompt, TrustStore


def make_key_blob(seed: int = 1, key_type: str = "ssh-ed25519") -> bytes:
    """Build a syntactically valid SSH public key blob."""
    name = key_type.encode("ascii")
    body = bytes((seed + i) % 256 for i in range(32))
    return struct.pack(">I", len(name)) + name + struct.pack(">I", len(body)) + body


def make_host_key(seed: int = 1, key_type: str = "ssh-ed25519") -> HostKey:
    return HostKey.from_blob(make_key_blob(seed, key_type))


class ScriptedConfirmer:
    """Confirmer that replays canned answers and records every prompt."""

    def __init__(self, *answers: bool):
        self._answers = list(answers)
        self.prompts: list[TrustPrompt] = []

    def confirm(self, prompt: TrustPrompt) -> bool:
        self.prompts.append(prompt)
        if not self._answers:
            raise AssertionError(f"unexpected prompt for {prompt.hostname}")
        return self._answers.pop(0)


class FakeExecutor:
    """RemoteExecutor returning fixed output, or raising a fixed error."""

    def __init__(self, output: str = "", error: Exception | None = None):
        self.output = output
        self.error = error
        self.commands: list[str] = []

    def execute_command(self, command: str) -> str:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def known_hosts_path(tmp_path: Path) -> Path:
    """Known hosts location inside a not-yet-created app directory."""
    return tmp_path / ".stax" / "known_hosts"


@pytest.fixture
def host_key() -> HostKey:
    return make_host_key(1)


@pytest.fixture
def other_host_key() -> HostKey:
    return make_host_key(2)


@pytest.fixture
def store_factory(known_hosts_path: Path):
    """Build a TrustStore over the temporary known_hosts with scripted answers."""

    def _factory(*answers: bool) -> tuple[TrustStore, ScriptedConfirmer]:
        confirmer = ScriptedConfirmer(*answers)
        return TrustStore(known_hosts_path, confirmer), confirmer

    return _factory


@pytest.fixture
def temp_app_dir(tmp_path: Path) -> Path:
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    return app_dir


@pytest.fixture
def isolated_settings(temp_app_dir: Path) -> Generator[StaxSettings, None, None]:
    """Settings with a clean environment and a temporary app directory."""
    with patch.dict(os.environ, {}, clear=True):
        settings = StaxSettings(app_dir=temp_app_dir)
    with SettingsContext(settings):
        yield settings


@pytest.fixture
def local_tree(tmp_path: Path) -> Path:
    """A small local file tree to hash."""
    root = tmp_path / "local"
    files = {
        "file1.txt": "content1",
        "file2.txt": "content2",
        "subdir/file3.txt": "content3",
        "subdir/nested/file4.txt": "content4",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root
