"""Host FIPS provider factory.

Creates the host FIPS provider matching the configured backend, or probes
the host libcrypto when the backend is "auto".
"""

from functools import lru_cache
from typing import Any, Optional

from fipsgate.config import get_settings
from fipsgate.core.errors import FIPSConfigurationError
from fipsgate.core.logging import get_logger

from .base import HostFIPSBackend, HostFIPSProvider
from .null import NullHostFIPSProvider
from .openssl import (
    LegacyOpenSSLHostFIPSProvider,
    OpenSSL3HostFIPSProvider,
    load_libcrypto,
)

logger = get_logger(__name__)

# Registry of libcrypto-backed providers, probed in this order by "auto"
_providers: dict[HostFIPSBackend, type[HostFIPSProvider]] = {
    HostFIPSBackend.OPENSSL3: OpenSSL3HostFIPSProvider,
    HostFIPSBackend.OPENSSL_LEGACY: LegacyOpenSSLHostFIPSProvider,
}


def register_provider(backend: HostFIPSBackend, provider_class: type[HostFIPSProvider]) -> None:
    """Register a libcrypto-backed provider class.

    Args:
        backend: Backend identifier
        provider_class: Provider class taking the loaded libcrypto
    """
    _providers[backend] = provider_class
    logger.info(f"Registered host FIPS provider: {backend.value}")


def _probe(lib: Any) -> HostFIPSProvider:
    for backend, provider_class in _providers.items():
        supports = getattr(provider_class, "supports", None)
        if supports is None or supports(lib):
            logger.debug("Selected host FIPS provider", backend=backend.value)
            return provider_class(lib)

    logger.info("libcrypto has no FIPS mode API; FIPS mode treated as disabled")
    return NullHostFIPSProvider()


def create_host_fips_provider(
    backend: str = "auto",
    libcrypto_path: Optional[str] = None,
    lib: Any = None,
) -> HostFIPSProvider:
    """Create a host FIPS provider.

    Args:
        backend: "auto" or a HostFIPSBackend value
        libcrypto_path: Explicit libcrypto to load
        lib: Already loaded libcrypto (skips loading)

    Raises:
        FIPSConfigurationError: Unknown backend, or an explicit backend whose
            library cannot be loaded or lacks the required symbols
    """
    if backend == "auto":
        if lib is None:
            try:
                lib = load_libcrypto(libcrypto_path)
            except FIPSConfigurationError as e:
                logger.info("No usable libcrypto; FIPS mode treated as disabled", reason=str(e))
                return NullHostFIPSProvider()
        return _probe(lib)

    try:
        selected = HostFIPSBackend(backend)
    except ValueError:
        raise FIPSConfigurationError(
            f"Unknown host FIPS backend: {backend}. "
            f"Supported: auto, {', '.join(b.value for b in HostFIPSBackend)}"
        )

    if selected == HostFIPSBackend.NONE:
        return NullHostFIPSProvider()

    provider_class = _providers.get(selected)
    if provider_class is None:
        raise FIPSConfigurationError(
            f"Host FIPS backend '{selected.value}' is not registered. "
            f"Available backends: {', '.join(p.value for p in _providers.keys())}"
        )

    if lib is None:
        lib = load_libcrypto(libcrypto_path)
    return provider_class(lib)


@lru_cache(maxsize=1)
def get_host_fips_provider() -> HostFIPSProvider:
    """Get the configured host FIPS provider.

    Returns a cached singleton instance.

    Raises:
        FIPSConfigurationError: If the configured backend is unusable
    """
    settings = get_settings()
    provider = create_host_fips_provider(
        backend=settings.host_fips_backend,
        libcrypto_path=settings.libcrypto_path,
    )
    logger.info(f"Created host FIPS provider: {provider.name}")
    return provider


def reset_host_fips_provider() -> None:
    """Reset the cached host FIPS provider.

    Useful for testing or reconfiguration.
    """
    get_host_fips_provider.cache_clear()
