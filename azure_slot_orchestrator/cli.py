"""Argument parsing, configuration loading, and orchestration entry point."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import DEPLOYMENT_TYPES, load_config
from .exceptions import ConfigError, SlotOrchestratorError
from .logging_config import configure_logging
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="azure-slot-orchestrator",
        description="Blue/green deployment-slot orchestration for Azure scale sets",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--deployment-type",
        choices=DEPLOYMENT_TYPES,
        help="Override deployment.deployment_type from the configuration",
    )
    parser.add_argument(
        "--version-id",
        help="Version id to deploy (only honoured for swap deployments)",
    )
    parser.add_argument(
        "--detect-only",
        action="store_true",
        help="Print the idle slot and exit without changing anything",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log at DEBUG level regardless of logging.level",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging, verbose=args.verbose)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    try:
        orchestrator = Orchestrator(config)
        if args.detect_only:
            slot, _ = orchestrator.detect()
            print(slot.value)
            return 0
        result = orchestrator.run(args.deployment_type, args.version_id)
    except SlotOrchestratorError as exc:
        logger.error("Fatal error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    logger.info(
        "Deployment %s finished for %s (version %s)",
        result.deployment_name or "(none)", result.idle_slot.value, result.version_id,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
