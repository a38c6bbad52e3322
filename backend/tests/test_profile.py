"""Tests for runtime profile parsing."""

import json

import pytest

from fipsgate.core.errors import ProfileError
from fipsgate.core.profile import RuntimeProfile, load_profile, parse_profile, split_statements


class TestSplitStatements:
    """Tests for comma-separated statement splitting."""

    def test_splits_and_keeps_order(self):
        """Should split on commas in order."""
        assert split_statements("rsa,ecc,ecc-min-size=256") == ("rsa", "ecc", "ecc-min-size=256")

    def test_strips_whitespace_and_empties(self):
        """Should drop whitespace and empty items."""
        assert split_statements(" rsa , ,aes,") == ("rsa", "aes")

    def test_none_and_empty(self):
        """Should return an empty tuple for missing input."""
        assert split_statements(None) == ()
        assert split_statements("") == ()

    def test_list_input(self):
        """Should normalize lists."""
        assert split_statements(["fips-host", " x "]) == ("fips-host", "x")


class TestRuntimeProfile:
    """Tests for RuntimeProfile."""

    def test_from_dict(self):
        """Should read Name, Algorithms and Attributes."""
        profile = RuntimeProfile.from_dict({
            "Name": "custom",
            "Algorithms": "rsa,ecc-min-size=256",
            "Attributes": "fips-host",
        })
        assert profile.name == "custom"
        assert profile.algorithms == ("rsa", "ecc-min-size=256")
        assert profile.attributes == ("fips-host",)

    def test_missing_members(self):
        """Should treat missing members as empty."""
        profile = RuntimeProfile.from_dict({"Name": "default-v1"})
        assert profile.algorithms == ()
        assert profile.attributes == ()

    def test_rejects_non_mapping(self):
        """Should reject documents that are not objects."""
        with pytest.raises(ProfileError, match="mapping"):
            RuntimeProfile.from_dict(["rsa"])

    @pytest.mark.parametrize("value", [False, 256, {"rsa": True}])
    def test_rejects_scalar_members(self, value):
        """Should reject statement members that are neither strings nor lists."""
        with pytest.raises(ProfileError, match="Attributes must be a string or a list"):
            RuntimeProfile.from_dict({"Name": "x", "Attributes": value})

    def test_to_dict(self):
        """Should serialize statements back to comma-separated strings."""
        profile = RuntimeProfile("p", ("rsa", "aes"), ("fips-host",))
        assert profile.to_dict() == {"Name": "p", "Algorithms": "rsa,aes", "Attributes": "fips-host"}


class TestParseProfile:
    """Tests for profile documents."""

    def test_json_document(self):
        """Should parse the JSON form."""
        text = json.dumps({"Name": "custom", "Algorithms": "rsa,camellia"})
        assert parse_profile(text).algorithms == ("rsa", "camellia")

    def test_active_profile_wrapper(self):
        """Should unwrap an ActiveProfile member."""
        text = json.dumps({"ActiveProfile": {"Name": "custom", "Attributes": "fips-host"}})
        assert parse_profile(text).attributes == ("fips-host",)

    def test_yaml_document(self):
        """Should parse YAML with list members."""
        text = "Name: custom\nAlgorithms:\n  - rsa\n  - ecc-min-size=256\n"
        assert parse_profile(text).algorithms == ("rsa", "ecc-min-size=256")

    def test_tab_indented_json(self):
        """Should accept JSON indented with tabs."""
        text = '{\n\t"Name": "custom",\n\t"Algorithms": "rsa,camellia"\n}'
        profile = parse_profile(text)
        assert profile.name == "custom"
        assert profile.algorithms == ("rsa", "camellia")

    def test_yaml_boolean_member(self):
        """Should raise ProfileError when YAML turns a member into a boolean."""
        with pytest.raises(ProfileError, match="got bool"):
            parse_profile("Name: x\nAttributes: no\n")

    def test_invalid_document(self):
        """Should raise ProfileError for unparsable text."""
        with pytest.raises(ProfileError, match="Invalid profile"):
            parse_profile("{unclosed: [")

    def test_empty_document(self):
        """Should raise ProfileError for empty text."""
        with pytest.raises(ProfileError, match="Empty profile"):
            parse_profile("")


class TestLoadProfile:
    """Tests for reading profile files."""

    def test_load(self, tmp_path):
        """Should read a profile from disk."""
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"Name": "custom", "Algorithms": "rsa"}), encoding="utf-8")
        assert load_profile(path).name == "custom"

    def test_missing_file(self, tmp_path):
        """Should raise ProfileError for a missing file."""
        with pytest.raises(ProfileError, match="Cannot read profile"):
            load_profile(tmp_path / "missing.json")

    def test_not_utf8(self, tmp_path):
        """Should raise ProfileError for a file that is not UTF-8."""
        path = tmp_path / "profile.json"
        path.write_bytes(b'{"Name": "\xff\xfe", "Algorithms": "rsa"}')
        with pytest.raises(ProfileError, match="Cannot read profile"):
            load_profile(path)
