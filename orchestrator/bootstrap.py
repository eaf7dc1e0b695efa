"""
Bootstrap Controller

Owns the service status and the single transition that matters for trust:
bootstrapping -> running. The transition only happens after a candidate
identity document passes attestation; any failure moves the service to
failed and is surfaced to the operator log.

Key features:
- Expected identity read once from this instance's own document
- Development mode skips attestation entirely
- A candidate document is evaluated at most once
"""
from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import NoReturn, Optional

from core.config.runtime import RuntimeConfig
from core.crypto.attestation import AttestationProvider, Ec2AttestationProvider
from core.http.metadata import InstanceMetadataClient
from core.schemas.errors import (
    AttestationException,
    BootstrapError,
    KeyhostError,
    KeyhostException,
)


logger = logging.getLogger(__name__)


class ServiceStatus(str, Enum):
    """Lifecycle status reported by the health endpoint."""
    BOOTSTRAPPING = "bootstrapping"
    RUNNING = "running"
    FAILED = "failed"


@dataclass
class AppState:
    """
    Process-wide state shared with the health endpoint.

    image_id is written once by establish_identity and read afterwards.
    """
    status: ServiceStatus = ServiceStatus.BOOTSTRAPPING
    image_id: str = ""
    dev_mode: bool = False
    failure: Optional[KeyhostError] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def transition(self, status: ServiceStatus, failure: Optional[KeyhostError] = None) -> None:
        """Move out of bootstrapping; running and failed are terminal."""
        with self._lock:
            if self.status != ServiceStatus.BOOTSTRAPPING:
                raise BootstrapError(
                    f"Cannot move from {self.status.value} to {status.value}",
                    stage="transition",
                )
            self.status = status
            self.failure = failure


class BootstrapController:
    """
    Drives startup attestation.

    Usage:
        controller = BootstrapController(config)
        controller.establish_identity()
        controller.admit(candidate_document)
    """

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        state: Optional[AppState] = None,
        metadata_client: Optional[InstanceMetadataClient] = None,
    ) -> None:
        self.config = config
        self.state = state or AppState()
        self.metadata_client = metadata_client or InstanceMetadataClient(config.metadata)
        self._provider: Optional[AttestationProvider] = None
        self._local_document: Optional[bytes] = None
        self._evaluated: set[str] = set()
        self._identity_established = False

    @property
    def provider(self) -> Optional[AttestationProvider]:
        return self._provider

    @property
    def local_document(self) -> Optional[bytes]:
        return self._local_document

    def establish_identity(self, *, dev_mode: bool = False) -> Optional[AttestationProvider]:
        """
        Fix the expected image id for the lifetime of the process.

        In development mode the id stays empty and no provider is built.

        Raises:
            BootstrapError: If the identity was already established, or the
                local document cannot be fetched or parsed
        """
        if self._identity_established:
            raise BootstrapError("Identity already established", stage="identity")

        if dev_mode:
            self.state.dev_mode = True
            self.state.image_id = ""
            self._identity_established = True
            logger.warning("Development mode: instance attestation is disabled")
            return None

        try:
            document = self.metadata_client.fetch_identity_document()
            provider = Ec2AttestationProvider.from_local_document(
                document,
                trusted_certificates=self.config.attestation.pinned_certificates,
                max_document_size=self.config.attestation.max_document_size,
            )
        except KeyhostException as e:
            self._fail("identity", e)

        self._local_document = document
        self._provider = provider
        self.state.image_id = provider.expected_image_id
        self._identity_established = True
        logger.info(f"Instance identity established: image {provider.expected_image_id}")
        return provider

    def admit(self, document: bytes) -> None:
        """
        Verify a candidate document and move the service to running.

        Raises:
            BootstrapError: If identity is not established, the document was
                already evaluated, or attestation failed (chained to the
                attestation error)
        """
        if not self._identity_established:
            raise BootstrapError("Identity not established", stage="attestation")

        if self.state.dev_mode:
            self.state.transition(ServiceStatus.RUNNING)
            logger.warning("Development mode: service running without attestation")
            return

        fingerprint = hashlib.sha256(document).hexdigest()
        if fingerprint in self._evaluated:
            raise BootstrapError(
                "Document was already evaluated",
                stage="attestation",
                details={"document_sha256": fingerprint},
            )
        self._evaluated.add(fingerprint)

        try:
            self._provider.verify_attestation(document)
        except AttestationException as e:
            self._fail("attestation", e)

        self.state.transition(ServiceStatus.RUNNING)
        logger.info(f"Attestation verified for image {self.state.image_id}; service running")

    def self_attest(self) -> None:
        """Admit this instance's own identity document."""
        if self.state.dev_mode:
            self.admit(b"")
            return
        if self._local_document is None:
            raise BootstrapError("Identity not established", stage="attestation")
        self.admit(self._local_document)

    def _fail(self, stage: str, error: KeyhostException) -> NoReturn:
        logger.error(f"Bootstrap failed during {stage}: [{error.code}] {error.message}")
        if self.state.status == ServiceStatus.BOOTSTRAPPING:
            self.state.transition(ServiceStatus.FAILED, failure=error.to_error_model())
        raise BootstrapError(
            f"Bootstrap failed during {stage}: {error.message}",
            stage=stage,
            details={"cause": error.code, **error.details},
        ) from error
