"""
Host-facing entry points for sibling linking.

SiblingLinkerService wires the store, resolver, orchestrator, scheduler and
(optionally) the vault watcher together:

    watcher event ──> on_document_changed ──> scheduler (debounce)
                                                   │
    trigger_scoped_scan(path) <────────────────────┘
    trigger_full_scan()        (bypasses the scheduler)

Configuration is a LinkerConfig snapshot; update_config() swaps in a new one
for subsequent scans.
"""

import threading
from typing import Optional

from src.shared.config import LinkerConfig
from src.shared.observability import get_logger
from src.vault import (
    DocumentNotFound,
    LinkResolver,
    Resolver,
    VaultStore,
    VaultWatcher,
)

from .notify import LogNotifier, Notifier
from .orchestrator import ScanOrchestrator, ScanResult
from .scheduler import DebouncedScanScheduler, TimerFactory, threading_timer

logger = get_logger(__name__)

CHANGE_NOTICE = "Sibling links updated"


class SiblingLinkerService:
    """Scan triggers, debounced change handling and watcher lifecycle."""

    def __init__(
        self,
        store: VaultStore,
        config: LinkerConfig,
        resolver: Optional[Resolver] = None,
        notifier: Optional[Notifier] = None,
        timer_factory: TimerFactory = threading_timer,
    ):
        self.store = store
        self.resolver = resolver or LinkResolver(store)
        self.notifier = notifier or LogNotifier()
        self._config = config
        self._result_lock = threading.Lock()
        self._last_result: Optional[ScanResult] = None
        self._watcher: Optional[VaultWatcher] = None

        self.scheduler = DebouncedScanScheduler(
            run_scan=self.trigger_scoped_scan,
            debounce_seconds=config.debounce_seconds,
            extension=config.extension,
            timer_factory=timer_factory,
        )

    @property
    def config(self) -> LinkerConfig:
        return self._config

    @property
    def last_result(self) -> Optional[ScanResult]:
        with self._result_lock:
            return self._last_result

    def update_config(self, config: LinkerConfig) -> None:
        """Use a new configuration snapshot for scans started from now on."""
        self._config = config
        self.scheduler.update_debounce(config.debounce_seconds)
        if config.extension != self.store.extension:
            self.store.extension = config.extension
            self.scheduler.update_extension(config.extension)
            if self._watcher is not None:
                self._watcher.update_extension(config.extension)
        logger.info(
            "Configuration updated",
            pattern=config.pattern,
            field_name=config.field_name,
            exclude_paths=config.exclude_paths,
            debounce_seconds=config.debounce_seconds,
            extension=config.extension,
        )

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def trigger_scoped_scan(self, path: str) -> bool:
        """Scan a single document; returns whether any document changed."""
        return self.scan(path).changed

    def trigger_full_scan(self) -> bool:
        """Scan every document in the vault; returns whether any document changed."""
        return self._run(None).changed

    def scan(self, scope: Optional[str] = None) -> ScanResult:
        """Like the trigger methods, but returns the full ScanResult."""
        if scope is not None:
            try:
                scope = self.store.relative_path(scope)
            except DocumentNotFound:
                # Reported as a failure by the scan itself
                pass
        return self._run(scope)

    def _run(self, scope: Optional[str]) -> ScanResult:
        config = self._config
        orchestrator = ScanOrchestrator(self.store, self.resolver, config)
        result = orchestrator.scan(scope)

        with self._result_lock:
            self._last_result = result

        if result.config_error:
            self.notifier.notify(f"Sibling linker configuration error: {result.config_error}")
        elif result.changed and config.notify_on_change:
            self.notifier.notify(CHANGE_NOTICE)
        return result

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def on_document_changed(self, path: str) -> bool:
        """Feed a change notification to the debounce scheduler."""
        return self.scheduler.notify(path)

    def start_watching(self) -> None:
        if self._watcher is None:
            self._watcher = VaultWatcher(
                self.store.root,
                self.on_document_changed,
                extension=self._config.extension,
                ignore_folders=self.store.ignore_folders,
            )
        self._watcher.start()

    def stop_watching(self) -> None:
        self.scheduler.cancel()
        if self._watcher is not None:
            self._watcher.stop()
