"""Test configuration and fixtures."""

import logging

import pytest

from fipsgate.config import get_settings
from fipsgate.core.host_fips import HostFIPSBackend, HostFIPSProvider, reset_host_fips_provider
from fipsgate.core.logging import ConsoleHandler


class FakeFunc:
    """Stand-in for a ctypes foreign function."""

    def __init__(self, result):
        self.result = result
        self.calls: list[tuple] = []
        self.argtypes = None
        self.restype = None

    def __call__(self, *args):
        self.calls.append(args)
        return self.result


class FakeOpenSSL3Lib:
    """libcrypto exporting the OpenSSL 3 default-properties API."""

    def __init__(self, fips_enabled: int = 1, enable_result: int = 1,
                 error_text: bytes = b"error:1C8000E9:Provider routines::fips module entering error state"):
        self.EVP_default_properties_is_fips_enabled = FakeFunc(fips_enabled)
        self.EVP_default_properties_enable_fips = FakeFunc(enable_result)
        self.ERR_get_error = FakeFunc(0x1C8000E9)
        self.ERR_error_string = FakeFunc(error_text)


class FakeLegacyLib:
    """libcrypto of an OpenSSL 1.x FIPS build."""

    def __init__(self, fips_mode: int = 1, set_result: int = 1,
                 error_text: bytes = b"error:2D06B06F:FIPS routines:FIPS_mode_set:fingerprint does not match"):
        self.FIPS_mode = FakeFunc(fips_mode)
        self.FIPS_mode_set = FakeFunc(set_result)
        self.ERR_get_error = FakeFunc(0x2D06B06F)
        self.ERR_error_string = FakeFunc(error_text)


class FakeNoFIPSLib:
    """libcrypto without any FIPS API."""

    def __init__(self):
        self.ERR_get_error = FakeFunc(0)
        self.ERR_error_string = FakeFunc(b"")


class FakeHostFIPSProvider(HostFIPSProvider):
    """In-memory host FIPS flag."""

    backend = HostFIPSBackend.OPENSSL3

    def __init__(self, enabled: bool = True, refuse: bool = False):
        self.enabled = enabled
        self.refuse = refuse
        self.disable_calls = 0

    def is_enabled(self) -> bool:
        return self.enabled

    def _disable_fips_mode(self) -> bool:
        self.disable_calls += 1
        if self.refuse:
            return False
        self.enabled = False
        return True

    def _last_error(self) -> str:
        return "error:1C8000E9:Provider routines::fips module entering error state"


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from FIPSGATE_* variables and cached objects."""
    for name in ("HOST_FIPS_BACKEND", "LIBCRYPTO_PATH", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"FIPSGATE_{name}", raising=False)
    get_settings.cache_clear()
    reset_host_fips_provider()
    yield
    get_settings.cache_clear()
    reset_host_fips_provider()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop console handlers installed by setup_logging() during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler, ConsoleHandler):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def diagnostics(caplog):
    """Return a callable listing the fipsgate warning/error lines logged so far."""
    caplog.set_level(logging.DEBUG, logger="fipsgate")

    def _messages(min_level: int = logging.WARNING) -> list[str]:
        return [
            r.getMessage()
            for r in caplog.records
            if r.levelno >= min_level and r.name.startswith("fipsgate")
        ]

    return _messages


@pytest.fixture
def openssl3_lib():
    return FakeOpenSSL3Lib


@pytest.fixture
def legacy_lib():
    return FakeLegacyLib


@pytest.fixture
def no_fips_lib():
    return FakeNoFIPSLib()


@pytest.fixture
def host_provider():
    """Host in FIPS mode that accepts being disabled."""
    return FakeHostFIPSProvider(enabled=True)


@pytest.fixture
def refusing_host_provider():
    """Host in FIPS mode that refuses to leave it."""
    return FakeHostFIPSProvider(enabled=True, refuse=True)


@pytest.fixture
def non_fips_host_provider():
    return FakeHostFIPSProvider(enabled=False)
