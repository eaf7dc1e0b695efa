"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m keyhost_cli serve [--dev] [--no-health]
    python -m keyhost_cli verify <document> --expected-image-id ID [--base64] [--cert PEM | --embedded-cert] [--json]
    python -m keyhost_cli inspect <document> [--base64]

Environment Variables:
    KEYHOST_LOG_LEVEL           Log level (default: INFO)
    KEYHOST_LOG_FILE            Additional log file
    KEYHOST_METADATA_ENDPOINT   Metadata service base URL
    KEYHOST_TRUSTED_CERT_FILES  Pinned signer certificates (PEM files)
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import RuntimeConfig, load_runtime_config
from core.schemas.errors import ConfigurationError
from keyhost_cli.commands import inspect, serve, verify


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Log to stderr, and also to log_file when configured.

    Records carry the thread name; the health server logs from its own thread.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=handlers,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="keyhost",
        description="Key host bootstrap - attest this instance and report status.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./config.json or /etc/keyhost/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- serve command ---
    serve_parser = subparsers.add_parser(
        "serve",
        help="Attest this instance and serve the health endpoint",
        description="Establish the instance identity, self-attest and report status.",
    )
    serve_parser.add_argument(
        "--dev",
        action="store_true",
        default=False,
        help="Development mode: skip instance attestation",
    )
    serve_parser.add_argument(
        "--no-health",
        action="store_true",
        default=False,
        help="Do not start the health endpoint",
    )
    serve_parser.set_defaults(func=serve.serve_cmd, requires_config=True)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify an identity document offline",
        description="Decode, check digest and signature, and compare the image id.",
    )
    verify_parser.add_argument(
        "document",
        type=str,
        help="Path to the identity document ('-' for stdin)",
    )
    verify_parser.add_argument(
        "--expected-image-id",
        type=str,
        required=True,
        help="Image id the document must attest",
    )
    verify_parser.add_argument(
        "--base64",
        action="store_true",
        default=False,
        help="Document is base64 text as served by the metadata service",
    )
    signer_group = verify_parser.add_mutually_exclusive_group()
    signer_group.add_argument(
        "--cert",
        type=Path,
        action="append",
        default=[],
        help="Pinned signer certificate (PEM); repeatable, overrides config",
    )
    signer_group.add_argument(
        "--embedded-cert",
        action="store_true",
        default=False,
        help="Trust the certificate embedded in the document instead of any pins",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )
    verify_parser.set_defaults(func=verify.verify_cmd, requires_config=False)

    # --- inspect command ---
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Print the claims of an identity document (no verification)",
    )
    inspect_parser.add_argument(
        "document",
        type=str,
        help="Path to the identity document ('-' for stdin)",
    )
    inspect_parser.add_argument(
        "--base64",
        action="store_true",
        default=False,
        help="Document is base64 text as served by the metadata service",
    )
    inspect_parser.set_defaults(func=inspect.inspect_cmd, requires_config=False)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        if args.requires_config or args.config is not None:
            config = load_runtime_config(args.config)
        else:
            config = RuntimeConfig.from_env()
    except ConfigurationError as e:
        print(f"Error loading configuration: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if log_level.upper() == "DEBUG":
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
