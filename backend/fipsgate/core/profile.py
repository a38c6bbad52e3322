"""Runtime profile documents reported by the TPM library.

A TPM 2 library reports its active profile as a JSON object whose
``Algorithms`` and ``Attributes`` members are comma-separated statement
strings, for example::

    {
        "Name": "custom",
        "Algorithms": "rsa,rsa-min-size=2048,ecc,ecc-min-size=256,aes",
        "Attributes": "fips-host"
    }

Documents are read as JSON first and otherwise with PyYAML's safe loader,
so hand-written YAML profiles work too.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

import yaml

from fipsgate.core.errors import ProfileError

Statements = Union[str, Iterable[str], None]


def split_statements(value: Statements) -> tuple[str, ...]:
    """Split a comma-separated statement string into its statements.

    Whitespace around statements and empty statements are dropped; order is
    kept. Lists and tuples are normalized the same way.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = value
    return tuple(s.strip() for s in (str(i) for i in items) if s.strip())


@dataclass
class RuntimeProfile:
    """Algorithms and attributes of the TPM library's active profile."""

    name: str = ""
    algorithms: tuple[str, ...] = field(default_factory=tuple)
    attributes: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuntimeProfile":
        """Build a profile from its JSON representation.

        Raises:
            ProfileError: If ``data`` is not a mapping or a statement member
                is neither a string nor a list
        """
        if not isinstance(data, Mapping):
            raise ProfileError(
                f"Profile must be a mapping, got {type(data).__name__}"
            )
        for key in ("Algorithms", "Attributes"):
            value = data.get(key)
            if value is not None and not isinstance(value, (str, list, tuple)):
                raise ProfileError(
                    f"Profile member {key} must be a string or a list, "
                    f"got {type(value).__name__}"
                )
        return cls(
            name=str(data.get("Name") or ""),
            algorithms=split_statements(data.get("Algorithms")),
            attributes=split_statements(data.get("Attributes")),
        )

    def to_dict(self) -> dict:
        return {
            "Name": self.name,
            "Algorithms": ",".join(self.algorithms),
            "Attributes": ",".join(self.attributes),
        }


def parse_profile(text: str, source: Optional[str] = None) -> RuntimeProfile:
    """Parse a profile document.

    The document is either the profile object itself or an object holding it
    under ``ActiveProfile``.

    Raises:
        ProfileError: If the text is not valid JSON/YAML or has the wrong shape
    """
    where = f" in {source}" if source else ""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ProfileError(f"Invalid profile document{where}: {e}") from e

    if data is None:
        raise ProfileError(f"Empty profile document{where}")
    if isinstance(data, Mapping) and "ActiveProfile" in data:
        data = data["ActiveProfile"]
    return RuntimeProfile.from_dict(data)


def load_profile(path: Union[str, Path]) -> RuntimeProfile:
    """Read a profile document from ``path``.

    Raises:
        ProfileError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ProfileError(f"Cannot read profile {path}: {e}") from e
    return parse_profile(text, source=str(path))
