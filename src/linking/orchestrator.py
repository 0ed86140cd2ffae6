"""
Vault scan orchestration for sibling mentions.

A scan walks the eligible documents in scope and, for every line holding two
or more wikilinks, merges each resolvable link's siblings into that link's
target document:

    Stage 1: Working set (one document, or the whole vault)
    Stage 2: Eligibility filter (name pattern + exclusion substrings)
    Stage 3: Per line: extract -> sibling sets -> resolve -> merge per target
    Stage 4: OR the merge results into ScanResult.changed

Failures are scoped to the smallest unit possible: a bad configuration aborts
the scan, a document that cannot be read is skipped, a target whose
frontmatter cannot be parsed or written is skipped.
"""

import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Sequence

from src.shared.config import FIELD_NAME_PATTERN, ConfigurationError, LinkerConfig
from src.shared.observability import get_logger, set_correlation_id
from src.shared.observability import metrics
from src.vault import (
    Document,
    DocumentNotFound,
    MetadataParseError,
    Resolver,
    StoreIOError,
    VaultError,
    VaultStore,
)

from .extract import extract_references
from .merge import merge_siblings
from .siblings import compute_sibling_sets

logger = get_logger(__name__)

FULL_SCOPE = "vault"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class ScanFailure:
    """A document that could not be processed."""

    path: str
    error: str
    stage: str  # "read" | "merge"


@dataclass
class ScanResult:
    """Outcome of one scan."""

    scan_id: str
    scope: str
    changed: bool = False
    documents_scanned: int = 0
    documents_skipped: int = 0
    lines_with_groups: int = 0
    merges_attempted: int = 0
    targets_updated: List[str] = field(default_factory=list)
    unresolved: int = 0
    failures: List[ScanFailure] = field(default_factory=list)
    config_error: Optional[str] = None
    duration_ms: int = 0

    def record_update(self, target: str) -> None:
        self.changed = True
        if target not in self.targets_updated:
            self.targets_updated.append(target)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for CLI output/logging."""
        return {
            "scan_id": self.scan_id,
            "scope": self.scope,
            "changed": self.changed,
            "documents_scanned": self.documents_scanned,
            "documents_skipped": self.documents_skipped,
            "lines_with_groups": self.lines_with_groups,
            "merges_attempted": self.merges_attempted,
            "targets_updated": list(self.targets_updated),
            "unresolved": self.unresolved,
            "failures": [
                {"path": f.path, "error": f.error, "stage": f.stage}
                for f in self.failures
            ],
            "config_error": self.config_error,
            "duration_ms": self.duration_ms,
        }


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EligibilityFilter:
    """Which documents a scan reads."""

    pattern: Pattern[str]
    exclude_paths: Sequence[str] = ()

    @classmethod
    def from_config(cls, config: LinkerConfig) -> "EligibilityFilter":
        try:
            pattern = re.compile(config.pattern)
        except (re.error, TypeError) as e:
            raise ConfigurationError(
                f"Invalid eligibility pattern {config.pattern!r}: {e}"
            ) from e
        return cls(pattern=pattern, exclude_paths=tuple(config.exclude_paths))

    def matches(self, document: Document) -> bool:
        if not self.pattern.search(document.name):
            return False
        return not any(
            excluded and excluded in document.path for excluded in self.exclude_paths
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ScanOrchestrator:
    """Runs scans against a store with one configuration snapshot."""

    def __init__(self, store: VaultStore, resolver: Resolver, config: LinkerConfig):
        self.store = store
        self.resolver = resolver
        self.config = config

    def scan(self, scope: Optional[str] = None) -> ScanResult:
        """
        Scan one document (scope=path) or the whole vault (scope=None).

        Never raises for configuration or store failures; they are recorded on
        the returned result.
        """
        scan_id = uuid.uuid4().hex[:12]
        scope_label = scope or FULL_SCOPE
        result = ScanResult(scan_id=scan_id, scope=scope_label)
        metric_scope = "document" if scope else "vault"
        start = time.monotonic()

        set_correlation_id(scan_id)
        try:
            try:
                eligibility = self._eligibility()
            except ConfigurationError as e:
                result.config_error = str(e)
                logger.error("Scan aborted: invalid configuration", error=str(e))
                metrics.scans_total.labels(scope=metric_scope, outcome="config_error").inc()
                return result

            self.resolver.refresh()

            for document in self._working_set(scope, result):
                if not eligibility.matches(document):
                    result.documents_skipped += 1
                    continue
                self._scan_document(document, result)

            result.duration_ms = int((time.monotonic() - start) * 1000)
            metrics.scan_duration_seconds.labels(scope=metric_scope).observe(
                time.monotonic() - start
            )
            metrics.scans_total.labels(
                scope=metric_scope,
                outcome="changed" if result.changed else "unchanged",
            ).inc()
            logger.info(
                "Scan complete",
                scope=scope_label,
                changed=result.changed,
                documents_scanned=result.documents_scanned,
                targets_updated=len(result.targets_updated),
                failures=len(result.failures),
                duration_ms=result.duration_ms,
            )
            return result
        finally:
            set_correlation_id(None)

    def _eligibility(self) -> EligibilityFilter:
        if not FIELD_NAME_PATTERN.match(self.config.field_name or ""):
            raise ConfigurationError(
                f"Invalid field name {self.config.field_name!r}"
            )
        return EligibilityFilter.from_config(self.config)

    def _working_set(self, scope: Optional[str], result: ScanResult) -> List[Document]:
        if scope is None:
            return self.store.list_documents()

        try:
            document = self.store.get_document(scope)
        except DocumentNotFound as e:
            result.failures.append(ScanFailure(path=scope, error=str(e), stage="read"))
            logger.warning("Scoped document not found", path=scope)
            return []
        if document.extension != self.store.extension:
            return []
        return [document]

    def _scan_document(self, document: Document, result: ScanResult) -> None:
        try:
            text = self.store.read_text(document.path)
        except (DocumentNotFound, StoreIOError) as e:
            result.failures.append(
                ScanFailure(path=document.path, error=str(e), stage="read")
            )
            metrics.document_failures_total.labels(reason="read").inc()
            logger.warning("Skipping unreadable document", path=document.path, error=str(e))
            return

        result.documents_scanned += 1
        for line_no, line in enumerate(text.split("\n"), start=1):
            tokens = list(extract_references(line))
            if len(tokens) < 2:
                continue
            result.lines_with_groups += 1
            logger.debug(
                "Sibling group found",
                path=document.path,
                line=line_no,
                links=tokens,
            )
            self._merge_group(document, tokens, result)

    def _merge_group(
        self, document: Document, tokens: List[str], result: ScanResult
    ) -> None:
        sibling_sets = compute_sibling_sets(tokens)
        targets = [self.resolver.resolve(token, document.path) for token in tokens]

        for i, target in enumerate(targets):
            if target is None:
                result.unresolved += 1
                metrics.unresolved_links_total.inc()
                logger.debug(
                    "Unresolved link", link=tokens[i], source=document.path
                )
                continue

            # sibling_sets[i] lists every index but i, in order
            others = [j for j in range(len(tokens)) if j != i]
            literals = [
                literal
                for j, literal in zip(others, sibling_sets[i])
                if targets[j] != target
            ]
            if not literals:
                continue

            result.merges_attempted += 1
            try:
                if merge_siblings(self.store, target, literals, self.config.field_name):
                    result.record_update(target)
                    metrics.frontmatter_writes_total.inc()
            except MetadataParseError as e:
                self._record_merge_failure(result, target, e, "parse")
            except VaultError as e:
                self._record_merge_failure(result, target, e, "write")

    def _record_merge_failure(
        self, result: ScanResult, target: str, error: VaultError, reason: str
    ) -> None:
        result.failures.append(ScanFailure(path=target, error=str(error), stage="merge"))
        metrics.document_failures_total.labels(reason=reason).inc()
        logger.warning("Skipping sibling merge", target=target, error=str(error))
