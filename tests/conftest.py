# Shared fixtures: temporary vaults on disk, fake timers, fake resolvers

import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Keep test runs independent of a developer's config file and environment
os.environ["ENV"] = "test"
os.environ.pop("CONFIG_PATH", None)
os.environ.pop("VAULT_PATH", None)


class FakeTimer:
    """Timer stand-in; tests expire it by calling fire()."""

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled and not self.fired:
            self.fired = True
            self.callback()


class FakeTimerFactory:
    """Records every timer a scheduler creates."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]


class FakeResolver:
    """Resolver with a fixed token -> path table."""

    def __init__(self, table: Dict[str, Optional[str]]):
        self.table = table
        self.refreshes = 0
        self.calls: List[tuple] = []

    def refresh(self) -> None:
        self.refreshes += 1

    def resolve(self, token: str, source_path: str) -> Optional[str]:
        self.calls.append((token, source_path))
        return self.table.get(token)


@pytest.fixture
def vault(tmp_path):
    """Empty vault root"""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_note(vault):
    """Write a note below the vault root and return its path"""

    def _write(rel_path: str, text: str) -> Path:
        path = vault / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_note(vault):
    def _read(rel_path: str) -> str:
        return (vault / rel_path).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def store(vault):
    from src.vault import VaultStore

    return VaultStore(vault, ignore_folders=[".obsidian", ".trash"])


@pytest.fixture
def linker_config():
    from src.shared.config import LinkerConfig

    return LinkerConfig()


@pytest.fixture
def timer_factory():
    return FakeTimerFactory()


@pytest.fixture
def fake_resolver_cls():
    return FakeResolver
