"""
CLI Serve Command

Startup sequence of the key host:
1. Start the health endpoint (reports "bootstrapping")
2. Establish the expected image id from this instance's identity document
3. Self-attest; on success the status moves to "running"

Any failure terminates startup with the reason in the log.

Usage:
    keyhost serve [--dev] [--no-health]
"""

from __future__ import annotations

import logging
import threading
from argparse import Namespace

from api.app import create_app, start_health_server
from core.schemas.errors import BootstrapError
from orchestrator.bootstrap import AppState, BootstrapController


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def serve_cmd(args: Namespace) -> int:
    """Handle serve command."""
    config = args.runtime_config
    logger.info(f"Loaded configuration from {config.source}")
    logger.info(
        f"Bootstrap host {config.service.bootstrap_host or '(none)'}, "
        f"{len(config.service.client_trust_store)} client trust anchors, "
        f"{len(config.attestation.pinned_certificates)} pinned signer certificates"
    )

    state = AppState()
    if not args.no_health:
        start_health_server(create_app(state), host=config.health.host, port=config.health.port)

    controller = BootstrapController(config, state=state)
    try:
        controller.establish_identity(dev_mode=args.dev)
        controller.self_attest()
    except BootstrapError as e:
        logger.critical(f"Startup aborted: {e.message}")
        return EXIT_VERIFICATION_FAILED
    finally:
        controller.metadata_client.close()

    if args.no_health:
        return EXIT_SUCCESS

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return EXIT_SUCCESS
