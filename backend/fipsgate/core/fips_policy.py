"""FIPS admissibility policy for a TPM library's enabled algorithms.

A host running OpenSSL in FIPS mode refuses a handful of algorithms and key
sizes that a TPM 2 crypto backend may still have enabled. If any of them is
enabled, the TPM library's self-tests fail. This module decides, from the
algorithm statements the TPM library reports, whether the enabled set is safe
under host FIPS mode:

- A disallowed-algorithm check (camellia, rsaes, tdes)
- A minimum key-size check (e.g. ``ecc-min-size=224``)
- A profile-attribute table mapping profile attributes to both checks

A ``False`` verdict means the host's OpenSSL FIPS mode has to be disabled
for the TPM library to work. The evaluator never raises; every problem found
is reported as one warning line and folded into the verdict.
"""

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from fipsgate.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeySizeRequirement:
    """A statement prefix and the smallest key size it may declare."""

    keyword: str
    min_size: int


@dataclass(frozen=True)
class PolicyEntry:
    """Checks applied when a profile carries ``attribute``."""

    attribute: str
    disallowed_algorithms: tuple[str, ...]
    key_sizes: tuple[KeySizeRequirement, ...]


# FIPS-disabled algorithms that TPM 2 may enable
FIPS_DISABLED_ALGORITHMS: tuple[str, ...] = (
    "camellia",
    "rsaes",
    "tdes",
)

# Minimum key sizes required under FIPS
FIPS_KEY_SIZES: tuple[KeySizeRequirement, ...] = (
    KeySizeRequirement(keyword="ecc-min-size=", min_size=224),
)

# Profile attributes that disable the FIPS-disabled algorithms and key sizes
FIPS_ATTRIBUTES: tuple[PolicyEntry, ...] = (
    PolicyEntry(
        attribute="fips-host",
        disallowed_algorithms=FIPS_DISABLED_ALGORITHMS,
        key_sizes=FIPS_KEY_SIZES,
    ),
)

_LEADING_UNSIGNED = re.compile(r"\s*\+?(\d+)", re.ASCII)


def find_statement(
    statements: Sequence[str],
    needle: str,
    length: Optional[int] = None,
) -> int:
    """Return the index of the first statement matching ``needle``, or -1.

    With ``length=None`` the whole statement must equal ``needle``. With a
    length, only the first ``length`` characters are compared, so a keyword
    like ``ecc-min-size=`` finds ``ecc-min-size=256``.
    """
    if length is None:
        for i, statement in enumerate(statements):
            if statement == needle:
                return i
        return -1

    prefix = needle[:length]
    for i, statement in enumerate(statements):
        if statement[:length] == prefix:
            return i
    return -1


def parse_key_size(text: str) -> int:
    """Parse the numeric suffix of a key-size statement.

    The TPM library is trusted to produce well-formed numbers, so nothing is
    validated: leading whitespace and a ``+`` are skipped, the longest run of
    decimal digits is read, and trailing characters are ignored. Text without
    leading digits yields 0, which fails any minimum size.
    """
    match = _LEADING_UNSIGNED.match(text)
    if match is None:
        return 0
    return int(match.group(1))


def algorithm_set_contains_disallowed(
    enabled: Sequence[str],
    disallowed: Iterable[str] = FIPS_DISABLED_ALGORITHMS,
) -> bool:
    """Check whether any disallowed algorithm is enabled.

    Stops at the first disallowed algorithm found.
    """
    for algorithm in disallowed:
        if find_statement(enabled, algorithm) >= 0:
            logger.warning(
                f"Warning(FIPS): Enable algorithms contain '{algorithm}'.",
                algorithm=algorithm,
            )
            return True
    return False


def key_sizes_satisfied(
    enabled: Sequence[str],
    requirements: Iterable[KeySizeRequirement] = FIPS_KEY_SIZES,
) -> bool:
    """Check that every key-size requirement is stated and large enough.

    A missing statement is reported and scanning continues with the next
    requirement. A key size below the minimum is reported and ends the scan.
    """
    all_good = True

    for requirement in requirements:
        length = len(requirement.keyword)
        j = find_statement(enabled, requirement.keyword, length)
        if j >= 0:
            value = parse_key_size(enabled[j][length:])
            if value < requirement.min_size:
                logger.warning(
                    f"Warning(FIPS): Enabled key sizes {requirement.keyword}{value} "
                    f"is smaller than required {requirement.min_size}.",
                    keyword=requirement.keyword,
                    key_size=value,
                    min_size=requirement.min_size,
                )
                all_good = False
                break
        else:
            logger.warning(
                f"Warning(FIPS): Missing statement '{requirement.keyword}"
                f"{requirement.min_size}' to restrict key size.",
                keyword=requirement.keyword,
                min_size=requirement.min_size,
            )
            all_good = False

    return all_good


def _algorithms_are_disabled(
    enabled: Sequence[str],
    disallowed: Iterable[str],
    key_sizes: Iterable[KeySizeRequirement],
) -> bool:
    # Key sizes are checked even after a disallowed algorithm was found
    all_good = not algorithm_set_contains_disallowed(enabled, disallowed)
    if not key_sizes_satisfied(enabled, key_sizes):
        all_good = False
    return all_good


def algorithms_are_disabled(enabled: Sequence[str]) -> bool:
    """Check that the FIPS-disabled algorithms and key sizes are not enabled.

    Returns ``True`` if none of the built-in FIPS-disabled algorithms is
    enabled and all minimum key sizes are stated and met. ``False`` means
    OpenSSL's FIPS mode must be disabled for the TPM library to pass its
    self-tests.
    """
    return _algorithms_are_disabled(
        tuple(enabled), FIPS_DISABLED_ALGORITHMS, FIPS_KEY_SIZES
    )


def attributes_disable_bad_algos(
    attributes: Sequence[str],
    enabled: Sequence[str],
    table: Sequence[PolicyEntry] = FIPS_ATTRIBUTES,
) -> bool:
    """Check whether the profile attributes rule out the FIPS-disabled algorithms.

    Every table entry whose attribute is present is evaluated in order; the
    first failing entry decides ``False``. If no attribute is present the
    result is ``False`` as well: nothing confirms the profile is FIPS-safe.
    """
    attributes = tuple(attributes)
    enabled = tuple(enabled)
    ret = False

    for entry in table:
        if find_statement(attributes, entry.attribute) >= 0:
            ret = _algorithms_are_disabled(
                enabled, entry.disallowed_algorithms, entry.key_sizes
            )
            if not ret:
                break

    return ret


class _RepeatFilter(logging.Filter):
    def __init__(self):
        super().__init__()
        self.seen: set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if message in self.seen:
            return False
        self.seen.add(message)
        return True


@contextmanager
def report_once() -> Iterator[None]:
    """Log each distinct policy diagnostic at most once inside the block.

    Evaluating the attribute table after the built-in check runs the same
    checks again; only the first report of each problem is kept.
    """
    repeat_filter = _RepeatFilter()
    logger.addFilter(repeat_filter)
    try:
        yield
    finally:
        logger.removeFilter(repeat_filter)


def describe_policy_table(table: Sequence[PolicyEntry] = FIPS_ATTRIBUTES) -> dict:
    """Get the built-in policy as plain data for documentation.

    Returns:
        Dictionary with the default lists and the per-attribute table
    """

    def _key_sizes(requirements: Iterable[KeySizeRequirement]) -> list[dict]:
        return [
            {"keyword": r.keyword, "min_size": r.min_size}
            for r in requirements
        ]

    return {
        "disallowed_algorithms": list(FIPS_DISABLED_ALGORITHMS),
        "key_sizes": _key_sizes(FIPS_KEY_SIZES),
        "attributes": [
            {
                "attribute": entry.attribute,
                "disallowed_algorithms": list(entry.disallowed_algorithms),
                "key_sizes": _key_sizes(entry.key_sizes),
            }
            for entry in table
        ],
    }
