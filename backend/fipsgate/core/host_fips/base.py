"""Base host FIPS provider interface.

Every way of reaching the host's OpenSSL FIPS flag implements this
interface, so callers never branch on the OpenSSL flavour themselves.
"""

from abc import ABC, abstractmethod
from enum import Enum

from fipsgate.core.errors import HostFIPSError
from fipsgate.core.logging import get_logger

logger = get_logger(__name__)


class HostFIPSBackend(str, Enum):
    """Supported host FIPS accessors."""
    OPENSSL3 = "openssl3"              # EVP_default_properties_* (OpenSSL >= 3.0)
    OPENSSL_LEGACY = "openssl-legacy"  # FIPS_mode / FIPS_mode_set (OpenSSL 1.x FIPS builds)
    NONE = "none"                      # Hosts without an OpenSSL FIPS mode


class HostFIPSProvider(ABC):
    """Query and disable the host OpenSSL's FIPS mode.

    Implementations provide the raw calls; :meth:`disable` reports the
    outcome and turns a refused request into :class:`HostFIPSError`.
    """

    backend: HostFIPSBackend

    @property
    def name(self) -> str:
        return self.backend.value

    @abstractmethod
    def is_enabled(self) -> bool:
        """Return True if the host enforces FIPS mode."""
        pass

    @abstractmethod
    def _disable_fips_mode(self) -> bool:
        """Ask the host to leave FIPS mode. Return True on success."""
        pass

    @abstractmethod
    def _last_error(self) -> str:
        """Describe why the last request was refused."""
        pass

    def disable(self) -> None:
        """Disable host FIPS mode.

        Avoids TPM library self-test failures caused by algorithms that
        FIPS mode deactivates.

        Raises:
            HostFIPSError: If the host refused the request
        """
        if self._disable_fips_mode():
            logger.warning("Warning: Disabled OpenSSL FIPS mode", provider=self.name)
            return

        error = self._last_error()
        logger.error(
            f"Failed to disable OpenSSL FIPS mode: {error}",
            provider=self.name,
        )
        raise HostFIPSError(
            f"Failed to disable OpenSSL FIPS mode: {error}",
            openssl_error=error,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} backend={self.name}>"
