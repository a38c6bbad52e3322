"""Access to the host OpenSSL's FIPS mode.

Supported backends:
- openssl3: OpenSSL >= 3.0 default-properties API
- openssl-legacy: FIPS_mode / FIPS_mode_set of OpenSSL 1.x FIPS builds
- none: hosts without an OpenSSL FIPS mode

The backend is chosen once, from configuration or by probing libcrypto.
"""

from .base import HostFIPSBackend, HostFIPSProvider
from .null import NullHostFIPSProvider
from .openssl import LegacyOpenSSLHostFIPSProvider, OpenSSL3HostFIPSProvider
from .factory import (
    create_host_fips_provider,
    get_host_fips_provider,
    register_provider,
    reset_host_fips_provider,
)

__all__ = [
    "HostFIPSBackend",
    "HostFIPSProvider",
    "NullHostFIPSProvider",
    "OpenSSL3HostFIPSProvider",
    "LegacyOpenSSLHostFIPSProvider",
    "create_host_fips_provider",
    "get_host_fips_provider",
    "register_provider",
    "reset_host_fips_provider",
]
