"""
Runtime Configuration

Central configuration for the service: peer trust material, metadata
access, attestation policy, health endpoint and logging.
"""

from __future__ import annotations

import base64
import binascii
import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from cryptography import x509
from dotenv import load_dotenv

from core.cms.decoder import MAX_DOCUMENT_SIZE
from core.crypto.platform_certs import platform_signing_certificates
from core.schemas.errors import ConfigurationError

load_dotenv()


# Searched in order when no explicit path is given
DEFAULT_CONFIG_PATHS = (
    Path("config.json"),
    Path("/etc/keyhost/config.json"),
)

ENV_PREFIX = "KEYHOST_"


@dataclass
class ServiceConfig:
    """Peer-facing settings consumed by the RPC layer."""
    bootstrap_host: str = ""
    rpc_certificate: Optional[x509.Certificate] = None
    client_trust_store: list[x509.Certificate] = field(default_factory=list)
    root_password: Optional[str] = None


@dataclass
class MetadataConfig:
    """Configuration for the instance metadata service."""
    endpoint: str = "http://169.254.169.254"
    document_path: str = "/latest/dynamic/instance-identity/rsa2048"
    token_path: str = "/latest/api/token"
    use_token: bool = False
    token_ttl_seconds: int = 21600
    timeout: float = 5.0

    @property
    def document_url(self) -> str:
        return self.endpoint.rstrip("/") + self.document_path

    @property
    def token_url(self) -> str:
        return self.endpoint.rstrip("/") + self.token_path


@dataclass
class AttestationConfig:
    """
    Signer pinning and input bounds for attestation.

    The verifier trusts pinned_certificates: the bundled platform
    certificates (unless platform_certificates is off) followed by
    trusted_certificates. With both empty, the certificate embedded in
    each document is used.
    """
    trusted_certificates: list[x509.Certificate] = field(default_factory=list)
    platform_certificates: bool = True
    max_document_size: int = MAX_DOCUMENT_SIZE

    @property
    def pinned_certificates(self) -> list[x509.Certificate]:
        pinned = list(platform_signing_certificates()) if self.platform_certificates else []
        pinned.extend(cert for cert in self.trusted_certificates if cert not in pinned)
        return pinned


@dataclass
class HealthConfig:
    """Configuration for the health-check endpoint."""
    host: str = "0.0.0.0"
    port: int = 8081


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - JSON file (the deployed config.json)
    - YAML file
    - Environment variables
    - Programmatic construction

    Top-level camelCase keys (rpcCertificate, bootstrapHost,
    clientTrustStore, rootPassword) keep the layout of existing
    deployments; certificates there are base64 DER.
    """
    service: ServiceConfig = field(default_factory=ServiceConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    attestation: AttestationConfig = field(default_factory=AttestationConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    source: Optional[str] = None

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - KEYHOST_LOG_LEVEL: Log level name
        - KEYHOST_LOG_FILE: Additional log file
        - KEYHOST_BOOTSTRAP_HOST: Bootstrap peer host
        - KEYHOST_METADATA_ENDPOINT: Metadata service base URL
        - KEYHOST_METADATA_USE_TOKEN: Use session tokens (true/false)
        - KEYHOST_METADATA_TIMEOUT: Request timeout in seconds
        - KEYHOST_HEALTH_PORT: Health endpoint port
        - KEYHOST_PLATFORM_CERTIFICATES: Pin the bundled platform certificates (true/false)
        - KEYHOST_TRUSTED_CERT_FILES: PEM files, os.pathsep separated
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            overrides["log_file"] = os.getenv(f"{ENV_PREFIX}LOG_FILE")

        if os.getenv(f"{ENV_PREFIX}BOOTSTRAP_HOST"):
            overrides["bootstrapHost"] = os.getenv(f"{ENV_PREFIX}BOOTSTRAP_HOST")

        if os.getenv(f"{ENV_PREFIX}METADATA_ENDPOINT"):
            overrides.setdefault("metadata", {})["endpoint"] = os.getenv(
                f"{ENV_PREFIX}METADATA_ENDPOINT"
            )
        if os.getenv(f"{ENV_PREFIX}METADATA_USE_TOKEN"):
            overrides.setdefault("metadata", {})["use_token"] = (
                os.getenv(f"{ENV_PREFIX}METADATA_USE_TOKEN", "false").lower() == "true"
            )
        if os.getenv(f"{ENV_PREFIX}METADATA_TIMEOUT"):
            overrides.setdefault("metadata", {})["timeout"] = _env_number(
                "METADATA_TIMEOUT", float
            )

        if os.getenv(f"{ENV_PREFIX}HEALTH_PORT"):
            overrides.setdefault("health", {})["port"] = _env_number("HEALTH_PORT", int)

        if os.getenv(f"{ENV_PREFIX}PLATFORM_CERTIFICATES"):
            overrides.setdefault("attestation", {})["platform_certificates"] = (
                os.getenv(f"{ENV_PREFIX}PLATFORM_CERTIFICATES", "true").lower() == "true"
            )

        if os.getenv(f"{ENV_PREFIX}TRUSTED_CERT_FILES"):
            files = os.getenv(f"{ENV_PREFIX}TRUSTED_CERT_FILES", "").split(os.pathsep)
            overrides.setdefault("attestation", {})["trusted_certificate_files"] = [
                f for f in files if f
            ]

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration purely from environment variables."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON or YAML file (by extension)."""
        path = Path(path)
        config = cls.from_dict(_read_config_file(path), base_dir=path.parent)
        config.source = str(path)
        return config

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        base_dir: Optional[Path] = None,
    ) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be an object")

        service = ServiceConfig(
            bootstrap_host=_optional_str(data, "bootstrapHost") or "",
            root_password=_optional_str(data, "rootPassword"),
        )
        if data.get("rpcCertificate") is not None:
            service.rpc_certificate = _load_der_b64(data["rpcCertificate"], "rpcCertificate")
        trust_store = data.get("clientTrustStore") or []
        if not isinstance(trust_store, list):
            raise ConfigurationError("clientTrustStore must be a list", key="clientTrustStore")
        service.client_trust_store = [
            _load_der_b64(item, f"clientTrustStore[{i}]")
            for i, item in enumerate(trust_store)
        ]

        metadata_data = data.get("metadata", {}) or {}
        health_data = data.get("health", {}) or {}
        try:
            metadata = MetadataConfig(**metadata_data) if metadata_data else MetadataConfig()
            health = HealthConfig(**health_data) if health_data else HealthConfig()
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

        attestation_data = data.get("attestation", {}) or {}
        platform_certificates = attestation_data.get("platform_certificates", True)
        if not isinstance(platform_certificates, bool):
            raise ConfigurationError(
                "attestation.platform_certificates must be true or false",
                key="attestation.platform_certificates",
            )
        attestation = AttestationConfig(
            trusted_certificates=_load_trusted_certificates(attestation_data, base_dir),
            platform_certificates=platform_certificates,
            max_document_size=_as_int(
                attestation_data.get("max_document_size", MAX_DOCUMENT_SIZE),
                "attestation.max_document_size",
            ),
        )

        return cls(
            service=service,
            metadata=metadata,
            attestation=attestation,
            health=health,
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary (secrets omitted)."""
        rpc_cert = self.service.rpc_certificate
        return {
            "service": {
                "bootstrap_host": self.service.bootstrap_host,
                "rpc_certificate_subject": (
                    rpc_cert.subject.rfc4514_string() if rpc_cert is not None else None
                ),
                "client_trust_store_size": len(self.service.client_trust_store),
                "root_password_set": bool(self.service.root_password),
            },
            "metadata": {
                "document_url": self.metadata.document_url,
                "use_token": self.metadata.use_token,
                "timeout": self.metadata.timeout,
            },
            "attestation": {
                "platform_certificates": self.attestation.platform_certificates,
                "trusted_certificates": [
                    cert.subject.rfc4514_string()
                    for cert in self.attestation.trusted_certificates
                ],
                "max_document_size": self.attestation.max_document_size,
            },
            "health": {
                "host": self.health.host,
                "port": self.health.port,
            },
            "log_level": self.log_level,
            "log_file": self.log_file,
        }


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file, then overlay environment variables.

    Search order when no path is given:
      1. ./config.json
      2. /etc/keyhost/config.json

    Raises:
        ConfigurationError: If no config file exists or it is invalid
    """
    if path is not None:
        candidates = [Path(path)]
    else:
        candidates = list(DEFAULT_CONFIG_PATHS)

    for candidate in candidates:
        if candidate.exists():
            break
    else:
        raise ConfigurationError("Unable to find config.json to load.")

    data = _read_config_file(candidate)
    merged = _merge(data, RuntimeConfig._get_env_overrides())
    config = RuntimeConfig.from_dict(merged, base_dir=candidate.parent)
    config.source = str(candidate)
    return config


# =============================================================================
# Internal helpers
# =============================================================================

def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            import yaml
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Unable to parse {path}: {e}") from e
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Unable to parse {path}: {e}") from e


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_number(name: str, convert: Callable[[str], Any]) -> Any:
    value = os.getenv(f"{ENV_PREFIX}{name}", "")
    try:
        return convert(value)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a number, got {value!r}",
            key=f"{ENV_PREFIX}{name}",
        ) from e


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer", key=key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", key=key) from e


def _optional_str(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string", key=key)
    return value


def _load_der_b64(value: Any, key: str) -> x509.Certificate:
    if not isinstance(value, str):
        raise ConfigurationError(f"Unable to decode {key}: expected base64 string", key=key)
    try:
        der = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError(f"Unable to decode {key}: {e}", key=key) from e
    try:
        return x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise ConfigurationError(f"Unable to parse {key}: {e}", key=key) from e


def _load_trusted_certificates(
    attestation_data: dict[str, Any],
    base_dir: Optional[Path],
) -> list[x509.Certificate]:
    certificates: list[x509.Certificate] = []

    for i, pem in enumerate(attestation_data.get("trusted_certificates", []) or []):
        key = f"attestation.trusted_certificates[{i}]"
        if not isinstance(pem, str):
            raise ConfigurationError(f"{key} must be a PEM string", key=key)
        certificates.extend(_load_pem(pem.encode("utf-8"), key))

    for name in attestation_data.get("trusted_certificate_files", []) or []:
        path = Path(name)
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        try:
            pem_bytes = path.read_bytes()
        except OSError as e:
            raise ConfigurationError(
                f"Unable to read trusted certificate {path}: {e}",
                key="attestation.trusted_certificate_files",
            ) from e
        certificates.extend(_load_pem(pem_bytes, str(path)))

    return certificates


def _load_pem(pem_bytes: bytes, key: str) -> list[x509.Certificate]:
    try:
        return x509.load_pem_x509_certificates(pem_bytes)
    except ValueError as e:
        raise ConfigurationError(f"Unable to parse {key}: {e}", key=key) from e
