"""
Tests for wdecustoms.manifest.codec module.

Tests the CustomFiles wire format including:
- Exact document layout expected by the deployment manager
- Legacy field offset vs natural attribute mapping
- Attribute escaping
- Charset-tolerant decoding
"""

from __future__ import annotations

import pytest

from wdecustoms.exceptions import ManifestDecodeError
from wdecustoms.manifest.codec import (
    MANIFEST_HEAD,
    MANIFEST_TAIL,
    decode_manifest,
    encode_line,
    encode_manifest,
)
from wdecustoms.models import CustomizationFile

EXPECTED_EMPTY = (
    '<?xml version="1.0" encoding="utf-16"?>\n'
    '<ArrayOfApplicationFile xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema">\n'
    "</ArrayOfApplicationFile>"
)


def _flagged() -> CustomizationFile:
    return CustomizationFile(
        "Custom.dll",
        "Modules",
        data_file="D",
        entry_point="E",
        is_main_config_file="M",
        optional="true",
        group_name="Agents",
    )


class TestEncode:
    """Tests for encoding."""

    def test_empty_manifest(self):
        """Test the document frame with no files."""
        assert encode_manifest([]) == EXPECTED_EMPTY
        assert encode_manifest([]) == MANIFEST_HEAD + MANIFEST_TAIL

    def test_default_line(self):
        """Test one line with default attributes."""
        line = encode_line(CustomizationFile("Custom.dll"))

        assert line == (
            '  <ApplicationFile FileName="Custom.dll" RelativePath="" DataFile="false" '
            'EntryPoint="false" IsMainConfigFile="false" Optional="false" GroupName="" />\n'
        )

    def test_no_trailing_newline(self):
        """Test that the document ends right after the closing tag."""
        text = encode_manifest([CustomizationFile("a.dll"), CustomizationFile("b.dll")])

        assert text.endswith('GroupName="" />\n</ArrayOfApplicationFile>')
        assert text.count("<ApplicationFile ") == 2

    def test_legacy_field_offset(self):
        """Test that values are shifted by one field by default."""
        line = encode_line(_flagged())

        assert 'DataFile="E"' in line
        assert 'EntryPoint="M"' in line
        assert 'IsMainConfigFile="M"' in line
        assert 'Optional="true"' in line
        assert 'GroupName="Agents"' in line

    def test_natural_mapping(self):
        """Test the unshifted layout when the offset is disabled."""
        line = encode_line(_flagged(), legacy_field_offset=False)

        assert 'DataFile="D" EntryPoint="E" IsMainConfigFile="M"' in line

    def test_attribute_order(self):
        """Test that attributes appear in the fixed order."""
        line = encode_line(_flagged())
        names = [part.split("=")[0] for part in line.split() if "=" in part]

        assert names == [
            "FileName",
            "RelativePath",
            "DataFile",
            "EntryPoint",
            "IsMainConfigFile",
            "Optional",
            "GroupName",
        ]

    def test_escaping(self):
        """Test that XML special characters in values are escaped."""
        line = encode_line(CustomizationFile('a&b<"c">.xml', group_name="x'y"))

        assert 'FileName="a&amp;b&lt;&quot;c&quot;&gt;.xml"' in line
        assert "GroupName=\"x'y\"" in line


class TestDecode:
    """Tests for decoding."""

    def test_decode_reads_attributes_under_their_labels(self):
        """Test decoding a hand-written manifest."""
        text = (
            MANIFEST_HEAD
            + '  <ApplicationFile FileName="a.dll" RelativePath="Modules" DataFile="true" '
            'EntryPoint="false" IsMainConfigFile="true" Optional="true" GroupName="G1" />\n'
            + MANIFEST_TAIL
        )

        (entry,) = decode_manifest(text)

        assert entry.key == ("a.dll", "Modules")
        assert entry.data_file == "true"
        assert entry.entry_point == "false"
        assert entry.is_main_config_file == "true"
        assert entry.optional == "true"
        assert entry.group_name == "G1"

    def test_declared_utf16_in_a_str(self):
        """Test that the utf-16 declaration does not break parsing of text."""
        assert decode_manifest(encode_manifest([CustomizationFile("a.dll")]))[0].file_name == "a.dll"

    @pytest.mark.parametrize("codec", ["utf-8", "utf-8-sig", "utf-16"])
    def test_bytes_in_any_charset(self, codec):
        """Test decoding bytes whatever their real encoding."""
        text = encode_manifest([CustomizationFile("Kundé.dll", "Ordnér")])

        (entry,) = decode_manifest(text.encode(codec))

        assert entry.key == ("Kundé.dll", "Ordnér")

    def test_missing_attributes_take_defaults(self):
        """Test that older manifests without every attribute still decode."""
        text = '<ArrayOfApplicationFile><ApplicationFile FileName="a.dll" /></ArrayOfApplicationFile>'

        (entry,) = decode_manifest(text)

        assert entry.relative_path == ""
        assert entry.optional == "false"
        assert entry.group_name == ""

    def test_malformed(self):
        """Test that broken XML raises ManifestDecodeError."""
        with pytest.raises(ManifestDecodeError, match="malformed"):
            decode_manifest("<ArrayOfApplicationFile><ApplicationFile")

    def test_wrong_root(self):
        """Test that another document type is rejected."""
        with pytest.raises(ManifestDecodeError, match="root element"):
            decode_manifest("<Files/>")


class TestRoundTrip:
    """Tests for encode/decode consistency."""

    def test_natural_mapping_round_trips(self):
        """Test identities and attributes survive without the offset."""
        files = [_flagged(), CustomizationFile("b.xml", "Languages", optional="true")]

        decoded = decode_manifest(encode_manifest(files, legacy_field_offset=False))

        assert [
            (f.key, f.data_file, f.entry_point, f.is_main_config_file, f.optional, f.group_name)
            for f in decoded
        ] == [
            (f.key, f.data_file, f.entry_point, f.is_main_config_file, f.optional, f.group_name)
            for f in files
        ]

    def test_legacy_offset_is_stable_with_itself(self):
        """Test that re-encoding a decoded legacy manifest gives the same text."""
        text = encode_manifest([_flagged(), CustomizationFile("b.dll")])
        decoded = decode_manifest(text)

        assert [f.key for f in decoded] == [("Custom.dll", "Modules"), ("b.dll", "")]
        assert encode_manifest(decoded, legacy_field_offset=False) == text
