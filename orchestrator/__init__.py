"""
Bootstrap Orchestration

Startup wiring between the metadata service, attestation and the
service status.

Public API:
- BootstrapController: Establishes identity and gates the running state
- AppState: Process-wide status shared with the health endpoint
- ServiceStatus: bootstrapping / running / failed
"""

from orchestrator.bootstrap import (
    AppState,
    BootstrapController,
    ServiceStatus,
)

__all__ = [
    "AppState",
    "BootstrapController",
    "ServiceStatus",
]
