#!/usr/bin/env python3
"""fipsgate CLI.

Checks a TPM library's runtime profile against the host FIPS policy and,
when needed, disables the host OpenSSL's FIPS mode.

Usage:
    fipsgate check --profile active-profile.json
    fipsgate check --algorithms "rsa,ecc,ecc-min-size=256" --attributes fips-host
    fipsgate status
    fipsgate reconcile --profile active-profile.json --dry-run
    fipsgate policy --format json

Exit Codes:
    0 - Success (profile is FIPS-compatible, or host reconciled)
    1 - Profile is not FIPS-compatible, or the host refused to leave FIPS mode
    2 - Configuration or profile error, or invalid arguments
"""

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from pydantic import ValidationError

from fipsgate.config import get_settings
from fipsgate.core.errors import FIPSConfigurationError, HostFIPSError, ProfileError
from fipsgate.core.fips import (
    get_host_fips_status,
    profile_is_fips_compatible,
    reconcile_host_fips,
)
from fipsgate.core.fips_policy import describe_policy_table
from fipsgate.core.host_fips import get_host_fips_provider
from fipsgate.core.logging import setup_logging
from fipsgate.core.profile import RuntimeProfile, load_profile, split_statements


# =============================================================================
# Terminal Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        for attr in ['RED', 'GREEN', 'YELLOW', 'CYAN', 'BOLD', 'RESET']:
            setattr(cls, attr, "")


def colored(text: str, color: str) -> str:
    return f"{color}{text}{Colors.RESET}"


def verdict(ok: bool) -> str:
    if ok:
        return colored("✓ pass", Colors.GREEN)
    return colored("✗ fail", Colors.RED)


# =============================================================================
# Diagnostics
# =============================================================================

class DiagnosticsCollector(logging.Handler):
    """Keeps diagnostic lines for JSON output instead of printing them."""

    def __init__(self):
        super().__init__(level=logging.WARNING)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


@contextmanager
def collect_diagnostics(enabled: bool) -> Iterator[list[str]]:
    """Divert fipsgate warnings into a list while ``enabled``."""
    if not enabled:
        yield []
        return

    collector = DiagnosticsCollector()
    package_logger = logging.getLogger("fipsgate")
    propagate = package_logger.propagate
    package_logger.addHandler(collector)
    package_logger.propagate = False
    try:
        yield collector.messages
    finally:
        package_logger.removeHandler(collector)
        package_logger.propagate = propagate


# =============================================================================
# Input
# =============================================================================

def resolve_profile(args) -> RuntimeProfile:
    """Build the profile from --profile, overridden by --algorithms/--attributes."""
    profile = load_profile(args.profile) if args.profile else RuntimeProfile()

    if args.algorithms is not None:
        profile.algorithms = split_statements(args.algorithms)
    if args.attributes is not None:
        profile.attributes = split_statements(args.attributes)

    return profile


# =============================================================================
# Command: check
# =============================================================================

def cmd_check(args) -> int:
    """Evaluate a profile against the FIPS policy."""
    profile = resolve_profile(args)
    as_json = args.format == "json"

    with collect_diagnostics(as_json) as diagnostics:
        algorithms_ok, attributes_ok = profile_is_fips_compatible(
            profile.attributes, profile.algorithms
        )
    compatible = bool(algorithms_ok or attributes_ok)

    if as_json:
        print(json.dumps({
            "profile": profile.to_dict(),
            "algorithms_disabled": algorithms_ok,
            "attributes_disable_bad_algos": attributes_ok,
            "compatible": compatible,
            "diagnostics": diagnostics,
        }, indent=2))
        return 0 if compatible else 1

    print(f"\n{colored('FIPS Profile Check', Colors.BOLD + Colors.CYAN)}")
    print("=" * 60)
    if profile.name:
        print(f"  Profile:    {profile.name}")
    print(f"  Algorithms: {', '.join(profile.algorithms) or '-'}")
    print(f"  Attributes: {', '.join(profile.attributes) or '-'}")
    print()
    print(f"  FIPS-disabled algorithms off: {verdict(algorithms_ok)}")
    if attributes_ok is None:
        print("  Attributes disable them:      not needed")
    else:
        print(f"  Attributes disable them:      {verdict(attributes_ok)}")
    print()
    if compatible:
        print(colored("Profile is compatible with host FIPS mode", Colors.GREEN))
    else:
        print(colored("Profile requires host FIPS mode to be disabled", Colors.RED))

    return 0 if compatible else 1


# =============================================================================
# Command: status
# =============================================================================

def cmd_status(args) -> int:
    """Show the host FIPS status."""
    status = get_host_fips_status(get_host_fips_provider())

    if args.format == "json":
        print(json.dumps(status.to_dict(), indent=2))
        return 0

    print(f"\n{colored('Host FIPS Status', Colors.BOLD + Colors.CYAN)}")
    print("=" * 60)
    print(f"  Provider:        {status.provider}")
    mode = colored("enabled", Colors.YELLOW) if status.fips_enabled else "disabled"
    print(f"  FIPS mode:       {mode}")
    print(f"  OpenSSL:         {status.openssl_version}")
    print(f"  FIPS attributes: {', '.join(status.policy_attributes)}")
    return 0


# =============================================================================
# Command: reconcile
# =============================================================================

def cmd_reconcile(args) -> int:
    """Disable host FIPS mode if the profile requires it."""
    profile = resolve_profile(args)
    as_json = args.format == "json"

    with collect_diagnostics(as_json) as diagnostics:
        try:
            result = reconcile_host_fips(
                profile.attributes,
                profile.algorithms,
                provider=get_host_fips_provider(),
                dry_run=args.dry_run,
            )
        except HostFIPSError as e:
            if not as_json:
                raise
            print(json.dumps({
                "error": str(e),
                "openssl_error": e.openssl_error,
                "diagnostics": diagnostics,
            }, indent=2))
            return 1

    if as_json:
        output = result.to_dict()
        output["diagnostics"] = diagnostics
        print(json.dumps(output, indent=2))
        return 0

    if not result.host_fips_enabled:
        print("Host is not in FIPS mode; nothing to do")
    elif result.compatible:
        print(colored("Profile is compatible with host FIPS mode; keeping it", Colors.GREEN))
    elif result.dry_run:
        print(colored("[DRY RUN] Host FIPS mode would be disabled", Colors.YELLOW))
    else:
        print(colored("Host FIPS mode disabled", Colors.YELLOW))
    return 0


# =============================================================================
# Command: policy
# =============================================================================

def cmd_policy(args) -> int:
    """Print the built-in FIPS policy."""
    table = describe_policy_table()

    if args.format == "json":
        print(json.dumps(table, indent=2))
        return 0

    print(f"\n{colored('FIPS Policy', Colors.BOLD + Colors.CYAN)}")
    print("=" * 60)
    for entry in table["attributes"]:
        print(f"\n  Attribute: {colored(entry['attribute'], Colors.BOLD)}")
        print(f"    Disallowed: {', '.join(entry['disallowed_algorithms'])}")
        for requirement in entry["key_sizes"]:
            print(f"    Requires:   {requirement['keyword']}{requirement['min_size']} or larger")
    return 0


# =============================================================================
# Main Entry Point
# =============================================================================

def _add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--profile", "-p", help="Runtime profile document (JSON or YAML)")
    parser.add_argument("--algorithms", "-a", help="Comma-separated algorithm statements")
    parser.add_argument("--attributes", "-t", help="Comma-separated profile attributes")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fipsgate",
        description="fipsgate - TPM profile vs. host FIPS mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a profile reported by the TPM library
  fipsgate check --profile active-profile.json

  # Check explicit statements
  fipsgate check --algorithms "rsa,ecc,ecc-min-size=256" --attributes fips-host

  # Disable host FIPS mode if the profile needs it
  fipsgate reconcile --profile active-profile.json --dry-run
  fipsgate reconcile --profile active-profile.json
        """
    )

    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser("check", help="Check a profile against the FIPS policy")
    _add_profile_arguments(check_parser)
    check_parser.add_argument("--format", choices=["text", "json"], default="text")

    # status command
    status_parser = subparsers.add_parser("status", help="Show host FIPS status")
    status_parser.add_argument("--format", choices=["text", "json"], default="text")

    # reconcile command
    reconcile_parser = subparsers.add_parser("reconcile", help="Disable host FIPS mode if needed")
    _add_profile_arguments(reconcile_parser)
    reconcile_parser.add_argument("--dry-run", action="store_true", help="Show what would be done")
    reconcile_parser.add_argument("--format", choices=["text", "json"], default="text")

    # policy command
    policy_parser = subparsers.add_parser("policy", help="Show the built-in FIPS policy")
    policy_parser.add_argument("--format", choices=["text", "json"], default="text")

    return parser


COMMANDS = {
    "check": cmd_check,
    "status": cmd_status,
    "reconcile": cmd_reconcile,
    "policy": cmd_policy,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(level=settings.log_level, log_format=settings.log_format)

    command = COMMANDS[args.command]
    try:
        return command(args)
    except (FIPSConfigurationError, ProfileError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except HostFIPSError:
        # Already reported on stderr by the provider
        return 1


if __name__ == "__main__":
    sys.exit(main())
