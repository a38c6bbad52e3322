"""Exception hierarchy for FIPS host handling.

Policy violations are never raised; they are logged and folded into the
boolean verdicts of :mod:`fipsgate.core.fips_policy`.
"""


class FIPSError(Exception):
    """Base class for FIPS-related errors."""

    pass


class HostFIPSError(FIPSError):
    """Raised when the host OpenSSL refuses to change its FIPS mode."""

    def __init__(self, message: str, openssl_error: str = ""):
        super().__init__(message)
        self.openssl_error = openssl_error


class FIPSConfigurationError(FIPSError):
    """Raised when the host FIPS accessor is misconfigured."""

    pass


class ProfileError(FIPSError):
    """Raised when a runtime profile document cannot be read."""

    pass
