"""Host FIPS mode reconciliation.

This module ties the FIPS policy to the host:
- Reports the host's FIPS status
- Decides, once at startup, whether the TPM library's active profile can run
  with the host in FIPS mode
- Disables the host's OpenSSL FIPS mode when it cannot

The host FIPS flag is process-global. reconcile_host_fips() must be called
from a single thread before any cryptographic work starts.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from cryptography.hazmat.backends.openssl.backend import backend as openssl_backend

from fipsgate.core.fips_policy import (
    FIPS_ATTRIBUTES,
    algorithms_are_disabled,
    attributes_disable_bad_algos,
    report_once,
)
from fipsgate.core.host_fips import HostFIPSProvider, get_host_fips_provider
from fipsgate.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class HostFIPSStatus:
    """Current host FIPS status."""

    provider: str
    fips_enabled: bool
    openssl_version: str
    policy_attributes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for CLI output."""
        return {
            "provider": self.provider,
            "fips_enabled": self.fips_enabled,
            "openssl_version": self.openssl_version,
            "policy_attributes": list(self.policy_attributes),
        }


@dataclass
class FIPSReconciliation:
    """Outcome of reconciling a TPM profile with the host FIPS mode.

    ``attributes_disable_bad_algos`` is None when the attribute table did not
    need to be consulted.
    """

    provider: str
    host_fips_enabled: bool
    algorithms_disabled: Optional[bool] = None
    attributes_disable_bad_algos: Optional[bool] = None
    fips_disabled: bool = False
    dry_run: bool = False

    @property
    def compatible(self) -> bool:
        """True if the profile can run with the host's current FIPS mode."""
        if not self.host_fips_enabled:
            return True
        return bool(self.algorithms_disabled or self.attributes_disable_bad_algos)

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "host_fips_enabled": self.host_fips_enabled,
            "algorithms_disabled": self.algorithms_disabled,
            "attributes_disable_bad_algos": self.attributes_disable_bad_algos,
            "compatible": self.compatible,
            "fips_disabled": self.fips_disabled,
            "dry_run": self.dry_run,
        }


def profile_is_fips_compatible(
    attributes: Sequence[str],
    algorithms: Sequence[str],
) -> tuple[bool, Optional[bool]]:
    """Evaluate a profile against the FIPS policy.

    The attribute table is only consulted when the built-in check fails. Each
    problem found is reported once even when both checks find it.

    Returns:
        Tuple of (algorithms_disabled, attributes_disable_bad_algos)
    """
    with report_once():
        if algorithms_are_disabled(algorithms):
            return True, None
        return False, attributes_disable_bad_algos(attributes, algorithms)


def get_host_fips_status(provider: Optional[HostFIPSProvider] = None) -> HostFIPSStatus:
    """Get the host's FIPS status."""
    provider = provider or get_host_fips_provider()
    return HostFIPSStatus(
        provider=provider.name,
        fips_enabled=provider.is_enabled(),
        openssl_version=openssl_backend.openssl_version_text(),
        policy_attributes=[entry.attribute for entry in FIPS_ATTRIBUTES],
    )


def reconcile_host_fips(
    attributes: Sequence[str],
    algorithms: Sequence[str],
    provider: Optional[HostFIPSProvider] = None,
    dry_run: bool = False,
) -> FIPSReconciliation:
    """Disable host FIPS mode if the TPM profile would fail under it.

    Args:
        attributes: Attributes of the TPM library's active profile
        algorithms: Algorithm statements of the active profile
        provider: Host FIPS provider; defaults to the configured one
        dry_run: Decide only, never change the host

    Raises:
        HostFIPSError: If the host refused to leave FIPS mode
    """
    provider = provider or get_host_fips_provider()
    result = FIPSReconciliation(
        provider=provider.name,
        host_fips_enabled=provider.is_enabled(),
        dry_run=dry_run,
    )

    if not result.host_fips_enabled:
        logger.debug("Host is not in FIPS mode", provider=provider.name)
        return result

    result.algorithms_disabled, result.attributes_disable_bad_algos = (
        profile_is_fips_compatible(attributes, algorithms)
    )
    if result.compatible:
        logger.info("TPM profile is compatible with host FIPS mode", provider=provider.name)
        return result

    if dry_run:
        logger.info("Host FIPS mode would be disabled", provider=provider.name)
        return result

    provider.disable()
    result.fips_disabled = True
    return result
