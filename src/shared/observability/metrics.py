# Prometheus metrics for sibling link maintenance

from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    start_http_server,
)

from .logging import get_logger

logger = get_logger(__name__)

# ===== Scan metrics =====
scans_total = Counter(
    "sibling_scans_total",
    "Total vault scans",
    ["scope", "outcome"],
)

scan_duration_seconds = Histogram(
    "sibling_scan_duration_seconds",
    "Vault scan duration in seconds",
    ["scope"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ===== Merge metrics =====
frontmatter_writes_total = Counter(
    "sibling_frontmatter_writes_total",
    "Frontmatter blocks rewritten with new sibling entries",
)

unresolved_links_total = Counter(
    "sibling_unresolved_links_total",
    "Wikilinks that did not resolve to a unique document",
)

document_failures_total = Counter(
    "sibling_document_failures_total",
    "Documents skipped because of read, write or parse failures",
    ["reason"],
)

# ===== Scheduler metrics =====
scheduler_triggers_total = Counter(
    "sibling_scheduler_triggers_total",
    "Change notifications accepted by the debounce scheduler",
)

# ===== Service info =====
service_info = Info(
    "sibling_linker",
    "Sibling linker service information",
)


def setup_metrics(env: str, port: Optional[int] = None) -> None:
    """
    Setup Prometheus metrics collection.

    Args:
        env: Environment name reported in the service info
        port: When given, expose metrics over HTTP on this port
    """
    service_info.info({"version": "0.1.0", "environment": env})

    if port:
        start_http_server(port)
        logger.info("Prometheus metrics endpoint started", port=port)
