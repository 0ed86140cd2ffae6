"""
Unit tests for watchdog event forwarding.
"""

from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from src.vault import VaultEventHandler, VaultWatcher


def _handler(vault, changes):
    return VaultEventHandler(
        vault, changes.append, extension="md", ignore_folders=[".obsidian"]
    )


class TestVaultEventHandler:
    def test_modified_document(self, vault):
        changes = []
        _handler(vault, changes).on_modified(
            FileModifiedEvent(str(vault / "daily" / "2024-01-01.md"))
        )
        assert changes == ["daily/2024-01-01.md"]

    def test_created_document(self, vault):
        changes = []
        _handler(vault, changes).on_created(FileCreatedEvent(str(vault / "New.md")))
        assert changes == ["New.md"]

    def test_moved_reports_destination(self, vault):
        changes = []
        _handler(vault, changes).on_moved(
            FileMovedEvent(str(vault / "Alice.md.part"), str(vault / "Alice.md"))
        )
        assert changes == ["Alice.md"]

    def test_other_extensions_ignored(self, vault):
        changes = []
        handler = _handler(vault, changes)
        handler.on_modified(FileModifiedEvent(str(vault / "image.png")))
        handler.on_modified(FileModifiedEvent(str(vault / "Alice.md.part")))
        assert changes == []

    def test_directories_ignored(self, vault):
        changes = []
        _handler(vault, changes).on_modified(DirModifiedEvent(str(vault / "daily.md")))
        assert changes == []

    def test_ignored_folder(self, vault):
        changes = []
        _handler(vault, changes).on_modified(
            FileModifiedEvent(str(vault / ".obsidian" / "workspace.md"))
        )
        assert changes == []

    def test_outside_vault(self, vault, tmp_path):
        changes = []
        _handler(vault, changes).on_modified(
            FileModifiedEvent(str(tmp_path / "elsewhere.md"))
        )
        assert changes == []


class TestVaultWatcher:
    def test_start_and_stop(self, vault):
        watcher = VaultWatcher(vault, lambda path: None)
        watcher.start()
        try:
            assert watcher.is_running
        finally:
            watcher.stop()
        assert not watcher.is_running

    def test_stop_without_start(self, vault):
        VaultWatcher(vault, lambda path: None).stop()

    def test_update_extension_applies_to_handler(self, vault):
        changes = []
        watcher = VaultWatcher(vault, changes.append)

        watcher.update_extension("markdown")
        watcher.handler.on_modified(FileModifiedEvent(str(vault / "a.md")))
        watcher.handler.on_modified(FileModifiedEvent(str(vault / "b.markdown")))

        assert changes == ["b.markdown"]
