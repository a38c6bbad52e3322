"""Host FIPS providers backed by the system libcrypto.

The FIPS flag lives in the process-wide state of the host's libcrypto, so it
is reached through ctypes rather than through the OpenSSL statically linked
into the ``cryptography`` wheels.

- OpenSSL >= 3.0: EVP_default_properties_is_fips_enabled /
  EVP_default_properties_enable_fips on the default library context
- OpenSSL 1.x FIPS builds: FIPS_mode / FIPS_mode_set
"""

import ctypes
import ctypes.util
from typing import Any, Optional

from fipsgate.core.errors import FIPSConfigurationError
from fipsgate.core.logging import get_logger

from .base import HostFIPSBackend, HostFIPSProvider

logger = get_logger(__name__)


def load_libcrypto(path: Optional[str] = None) -> ctypes.CDLL:
    """Load the host libcrypto.

    Args:
        path: Explicit library path; defaults to find_library("crypto")

    Raises:
        FIPSConfigurationError: If no libcrypto can be found or loaded
    """
    name = path or ctypes.util.find_library("crypto")
    if not name:
        raise FIPSConfigurationError("libcrypto not found on this host")

    try:
        lib = ctypes.CDLL(name)
    except OSError as e:
        raise FIPSConfigurationError(f"Cannot load libcrypto '{name}': {e}") from e

    logger.debug("Loaded libcrypto", library=name)
    return lib


class _LibcryptoProvider(HostFIPSProvider):
    """Shared libcrypto plumbing: symbol checks and OpenSSL error strings."""

    required_symbols: tuple[str, ...] = ()

    def __init__(self, lib: Any):
        missing = [s for s in self.required_symbols if not hasattr(lib, s)]
        if missing:
            raise FIPSConfigurationError(
                f"libcrypto lacks {', '.join(missing)} required by the "
                f"'{self.backend.value}' host FIPS backend"
            )
        self._lib = lib

        self._err_get_error = lib.ERR_get_error
        self._err_get_error.argtypes = []
        self._err_get_error.restype = ctypes.c_ulong

        self._err_error_string = lib.ERR_error_string
        self._err_error_string.argtypes = [ctypes.c_ulong, ctypes.c_char_p]
        self._err_error_string.restype = ctypes.c_char_p

    @classmethod
    def supports(cls, lib: Any) -> bool:
        """Check whether ``lib`` exports everything this provider calls."""
        return all(hasattr(lib, s) for s in cls.required_symbols)

    def _last_error(self) -> str:
        err = self._err_get_error()
        text = self._err_error_string(err, None)
        if not text:
            return f"error:{err:08X}"
        if isinstance(text, bytes):
            return text.decode("utf-8", errors="replace")
        return str(text)


class OpenSSL3HostFIPSProvider(_LibcryptoProvider):
    """FIPS flag of the default library context (OpenSSL >= 3.0)."""

    backend = HostFIPSBackend.OPENSSL3
    required_symbols = (
        "EVP_default_properties_is_fips_enabled",
        "EVP_default_properties_enable_fips",
        "ERR_get_error",
        "ERR_error_string",
    )

    def __init__(self, lib: Any):
        super().__init__(lib)

        self._is_fips_enabled = lib.EVP_default_properties_is_fips_enabled
        self._is_fips_enabled.argtypes = [ctypes.c_void_p]
        self._is_fips_enabled.restype = ctypes.c_int

        self._enable_fips = lib.EVP_default_properties_enable_fips
        self._enable_fips.argtypes = [ctypes.c_void_p, ctypes.c_int]
        self._enable_fips.restype = ctypes.c_int

    def is_enabled(self) -> bool:
        return self._is_fips_enabled(None) != 0

    def _disable_fips_mode(self) -> bool:
        return self._enable_fips(None, 0) == 1


class LegacyOpenSSLHostFIPSProvider(_LibcryptoProvider):
    """Global FIPS mode of OpenSSL 1.x FIPS-capable builds."""

    backend = HostFIPSBackend.OPENSSL_LEGACY
    required_symbols = (
        "FIPS_mode",
        "FIPS_mode_set",
        "ERR_get_error",
        "ERR_error_string",
    )

    def __init__(self, lib: Any):
        super().__init__(lib)

        self._fips_mode = lib.FIPS_mode
        self._fips_mode.argtypes = []
        self._fips_mode.restype = ctypes.c_int

        self._fips_mode_set = lib.FIPS_mode_set
        self._fips_mode_set.argtypes = [ctypes.c_int]
        self._fips_mode_set.restype = ctypes.c_int

    def is_enabled(self) -> bool:
        return self._fips_mode() != 0

    def _disable_fips_mode(self) -> bool:
        return self._fips_mode_set(0) == 1
