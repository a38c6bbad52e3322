"""Host FIPS provider for platforms without an OpenSSL FIPS mode.

Used on hosts whose OpenSSL has no FIPS API (e.g. LibreSSL on OpenBSD) or
when no libcrypto can be loaded at all.
"""

from .base import HostFIPSBackend, HostFIPSProvider


class NullHostFIPSProvider(HostFIPSProvider):
    """FIPS mode is never enabled and disabling it always succeeds."""

    backend = HostFIPSBackend.NONE

    def is_enabled(self) -> bool:
        return False

    def _disable_fips_mode(self) -> bool:
        return True

    def _last_error(self) -> str:
        return ""

    def disable(self) -> None:
        # Nothing to disable, nothing to report
        return None
