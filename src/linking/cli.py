"""
Command-line interface for sibling link maintenance.

    sibling-linker scan [--path NOTE.md] [--json]
    sibling-linker watch
    sibling-linker mentions NOTE.md [--json]
"""

import argparse
import json
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, Tuple

from src.shared.config import Config, ConfigurationError, Settings, reload_config
from src.shared.observability import get_logger, setup_logging, setup_metrics
from src.vault import DocumentNotFound, MetadataParseError, StoreIOError, VaultStore

from .service import SiblingLinkerService

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _load(args) -> Tuple[Config, Settings]:
    config_path = Path(args.config) if args.config else None
    config, settings = reload_config(config_path)
    if args.vault:
        config.vault.path = args.vault
    if args.log_level:
        config.logging.level = args.log_level
    if args.json_logs:
        config.logging.json_output = True
    return config, settings


def _build_service(config: Config) -> SiblingLinkerService:
    store = VaultStore(
        Path(config.vault.path),
        ignore_folders=config.vault.ignore_folders,
        extension=config.linker.extension,
    )
    return SiblingLinkerService(store, config.linker)


def cmd_scan(args, config: Config) -> int:
    """
    Implement 'sibling-linker scan'.

    Full vault scan, or a single document with --path.
    """
    service = _build_service(config)
    result = service.scan(args.path)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        status = "changed" if result.changed else "no changes"
        print(
            f"Scanned {result.documents_scanned} document(s) in {result.scope}: "
            f"{status}, {len(result.targets_updated)} updated, "
            f"{result.unresolved} unresolved link(s)"
        )
        for target in result.targets_updated:
            print(f"  updated {target}")
        for failure in result.failures:
            print(f"  failed  {failure.path} ({failure.stage}): {failure.error}")
        if result.config_error:
            print(f"Error: {result.config_error}", file=sys.stderr)

    return EXIT_CONFIG_ERROR if result.config_error else EXIT_OK


def cmd_watch(args, config: Config) -> int:
    """
    Implement 'sibling-linker watch'.

    Watches the vault and runs a debounced scan of each changed document.
    """
    service = _build_service(config)
    stop = threading.Event()

    def signal_handler(sig, frame):
        stop.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if args.initial_scan:
        service.trigger_full_scan()

    service.start_watching()
    print(
        f"Watching {service.store.root} "
        f"(debounce {config.linker.debounce_seconds}s, Ctrl+C to exit)"
    )
    try:
        while not stop.wait(1.0):
            pass
    finally:
        service.stop_watching()
        logger.info("Watch stopped", root=str(service.store.root))
    return EXIT_OK


def cmd_mentions(args, config: Config) -> int:
    """
    Implement 'sibling-linker mentions'.

    Prints a document's sibling field.
    """
    store = VaultStore(
        Path(config.vault.path),
        ignore_folders=config.vault.ignore_folders,
        extension=config.linker.extension,
    )
    field_name = config.linker.field_name
    try:
        path = store.get_document(args.path).path
        frontmatter = store.read_frontmatter(path)
    except (DocumentNotFound, MetadataParseError, StoreIOError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    value = frontmatter.get(field_name)
    entries = value if isinstance(value, list) else ([] if value is None else [value])
    if args.json:
        print(json.dumps({"path": path, field_name: entries}, default=str))
    else:
        for entry in entries:
            print(entry)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sibling-linker",
        description="Record same-line wikilink siblings in note frontmatter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--vault", help="Vault root (overrides config)")
    parser.add_argument("--config", help="Path to YAML configuration file")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit JSON log lines on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    scan_parser = subparsers.add_parser("scan", help="Scan the vault once")
    scan_parser.add_argument("--path", help="Scan only this document")
    scan_parser.add_argument("--json", action="store_true", help="JSON output")

    watch_parser = subparsers.add_parser(
        "watch", help="Scan changed documents continuously"
    )
    watch_parser.add_argument(
        "--initial-scan",
        action="store_true",
        help="Run a full scan before watching",
    )
    watch_parser.add_argument(
        "--metrics-port", type=int, help="Expose Prometheus metrics on this port"
    )

    mentions_parser = subparsers.add_parser(
        "mentions", help="Show a document's recorded siblings"
    )
    mentions_parser.add_argument("path", help="Vault-relative document path")
    mentions_parser.add_argument("--json", action="store_true", help="JSON output")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    try:
        config, settings = _load(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.logging.level, json_output=config.logging.json_output)
    metrics_port = None
    if args.command == "watch":
        metrics_port = args.metrics_port or settings.metrics_port
    setup_metrics(settings.env, port=metrics_port)

    if args.command == "scan":
        return cmd_scan(args, config)
    elif args.command == "watch":
        return cmd_watch(args, config)
    elif args.command == "mentions":
        return cmd_mentions(args, config)
    else:
        parser.print_help()
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
