"""
Sibling mention linking.

A line that links two or more notes makes those notes siblings; each linked
note records the others in a frontmatter list (default field: mentions).
"""

from .extract import extract_references
from .merge import merge_into_frontmatter, merge_siblings
from .notify import LogNotifier, Notifier
from .orchestrator import EligibilityFilter, ScanOrchestrator, ScanResult
from .scheduler import DebouncedScanScheduler, SchedulerState
from .service import SiblingLinkerService
from .siblings import compute_sibling_sets, to_literal

__version__ = "0.1.0"

__all__ = [
    "DebouncedScanScheduler",
    "EligibilityFilter",
    "LogNotifier",
    "Notifier",
    "ScanOrchestrator",
    "ScanResult",
    "SchedulerState",
    "SiblingLinkerService",
    "compute_sibling_sets",
    "extract_references",
    "merge_into_frontmatter",
    "merge_siblings",
    "to_literal",
]
