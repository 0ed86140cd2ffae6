"""
Vault change notifications via watchdog.

Forwards created/modified/moved-in events for documents with the vault
extension to a callback, as vault-relative paths. Debouncing is the caller's
job (see src.linking.scheduler).
"""

import os
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from src.shared.observability import get_logger

logger = get_logger(__name__)

ChangeCallback = Callable[[str], None]


class VaultEventHandler(FileSystemEventHandler):
    """Turns filesystem events into document-changed callbacks."""

    def __init__(
        self,
        root: Path,
        on_change: ChangeCallback,
        extension: str = "md",
        ignore_folders: Optional[Iterable[str]] = None,
    ):
        super().__init__()
        self.root = Path(root).resolve()
        self.on_change = on_change
        self.extension = extension.lstrip(".").lower()
        self.ignore_folders = set(ignore_folders or ())

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self._dispatch(event.src_path)

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self._dispatch(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        # Atomic saves land as a rename onto the real file name
        if not event.is_directory:
            self._dispatch(event.dest_path)

    def _dispatch(self, src_path) -> None:
        path = Path(os.fsdecode(src_path))
        if path.suffix.lstrip(".").lower() != self.extension:
            return

        try:
            rel_path = path.resolve().relative_to(self.root)
        except (OSError, ValueError):
            return
        if any(part in self.ignore_folders for part in rel_path.parts[:-1]):
            return

        logger.debug("Document changed", path=rel_path.as_posix())
        self.on_change(rel_path.as_posix())


class VaultWatcher:
    """Runs a watchdog observer over the vault root."""

    def __init__(
        self,
        root: Path,
        on_change: ChangeCallback,
        extension: str = "md",
        ignore_folders: Optional[Iterable[str]] = None,
    ):
        self.root = Path(root).resolve()
        self.handler = VaultEventHandler(
            self.root, on_change, extension=extension, ignore_folders=ignore_folders
        )
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def update_extension(self, extension: str) -> None:
        """Change which files count as documents; the observer keeps running."""
        self.handler.extension = extension.lstrip(".").lower()

    def start(self) -> None:
        """Start watching in a background thread"""
        if self._observer is not None:
            logger.warning("Watcher already running", root=str(self.root))
            return

        observer = Observer()
        observer.schedule(self.handler, str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Vault watcher started", root=str(self.root))

    def stop(self) -> None:
        """Stop watching gracefully"""
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join(timeout=10)
        self._observer = None
        logger.info("Vault watcher stopped", root=str(self.root))
