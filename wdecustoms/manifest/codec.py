# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""CustomFiles manifest encoding and decoding.

The deployment manager reads the list of customisation files from the
CustomFiles registry value, an XML document of this exact shape:

    <?xml version="1.0" encoding="utf-16"?>
    <ArrayOfApplicationFile xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xmlns:xsd="http://www.w3.org/2001/XMLSchema">
      <ApplicationFile FileName="a.dll" RelativePath="" DataFile="false" EntryPoint="false" IsMainConfigFile="false" Optional="false" GroupName="" />
    </ArrayOfApplicationFile>

Field offset:
    Deployed manifests have always been written with the attribute values
    shifted by one field: DataFile carries the entry_point value, EntryPoint
    and IsMainConfigFile both carry is_main_config_file. The deployment
    manager has only ever seen this layout, so it is still the default.
    Pass ``legacy_field_offset=False`` to write the natural mapping.

Decoding:
    The registry value is a Python str, yet the declaration says utf-16.
    Parsing a str makes expat ignore the declared label, so a document is
    accepted whatever encoding it claims. Bytes are decoded first (BOM
    aware, UTF-8 otherwise).
"""

from __future__ import annotations

from typing import Iterable
import xml.etree.ElementTree as ET
from xml.sax.saxutils import quoteattr

from wdecustoms.exceptions import ManifestDecodeError
from wdecustoms.models import FALSE, CustomizationFile

ROOT_TAG = "ArrayOfApplicationFile"
ITEM_TAG = "ApplicationFile"

MANIFEST_HEAD = (
    '<?xml version="1.0" encoding="utf-16"?>\n'
    '<ArrayOfApplicationFile xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema">\n'
)
MANIFEST_TAIL = "</ArrayOfApplicationFile>"

_QUOTE_ENTITIES = {'"': "&quot;"}

ATTRIBUTE_ORDER = (
    "FileName",
    "RelativePath",
    "DataFile",
    "EntryPoint",
    "IsMainConfigFile",
    "Optional",
    "GroupName",
)

_BOMS = (
    (b"\xef\xbb\xbf", "utf-8-sig"),
    (b"\xff\xfe", "utf-16"),
    (b"\xfe\xff", "utf-16"),
)


def _attribute_values(file: CustomizationFile, legacy_field_offset: bool) -> tuple[str, ...]:
    if legacy_field_offset:
        data_file, entry_point = file.entry_point, file.is_main_config_file
    else:
        data_file, entry_point = file.data_file, file.entry_point
    return (
        file.file_name,
        file.relative_path,
        data_file,
        entry_point,
        file.is_main_config_file,
        file.optional,
        file.group_name,
    )


def encode_line(file: CustomizationFile, *, legacy_field_offset: bool = True) -> str:
    """Encode one ApplicationFile element (with indent and newline)."""
    attrs = " ".join(
        f"{name}={quoteattr(value, _QUOTE_ENTITIES)}"
        for name, value in zip(
            ATTRIBUTE_ORDER, _attribute_values(file, legacy_field_offset)
        )
    )
    return f"  <{ITEM_TAG} {attrs} />\n"


def encode_manifest(
    files: Iterable[CustomizationFile], *, legacy_field_offset: bool = True
) -> str:
    """Encode files into the CustomFiles manifest text.

    Args:
        files: Files in manifest order.
        legacy_field_offset: Write the historical shifted layout (default).

    Returns:
        The manifest document, without a trailing newline.

    """
    lines = "".join(
        encode_line(f, legacy_field_offset=legacy_field_offset) for f in files
    )
    return MANIFEST_HEAD + lines + MANIFEST_TAIL


def _as_text(document: str | bytes) -> str:
    if isinstance(document, str):
        return document
    for bom, codec in _BOMS:
        if document.startswith(bom):
            return document.decode(codec)
    try:
        return document.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ManifestDecodeError(f"manifest is not valid UTF-8 or UTF-16: {err}") from err


def decode_manifest(document: str | bytes) -> list[CustomizationFile]:
    """Decode a CustomFiles manifest into CustomizationFile entries.

    Attribute values are read back under their own labels, the way the
    deployment manager itself reads them. A manifest written with the
    legacy field offset therefore decodes to the shifted values.

    Args:
        document: Manifest text (or raw bytes).

    Returns:
        One entry per ApplicationFile element, in document order. Missing
        attributes take the scan defaults.

    Raises:
        ManifestDecodeError: If the document is not well-formed XML or its
            root element is not ArrayOfApplicationFile.

    """
    text = _as_text(document)
    try:
        root = ET.fromstring(text)
    except ET.ParseError as err:
        raise ManifestDecodeError(f"malformed CustomFiles manifest: {err}") from err

    if root.tag != ROOT_TAG:
        raise ManifestDecodeError(
            f"unexpected manifest root element <{root.tag}>, expected <{ROOT_TAG}>"
        )

    entries: list[CustomizationFile] = []
    for element in root.iter(ITEM_TAG):
        attrib = element.attrib
        entries.append(
            CustomizationFile(
                file_name=attrib.get("FileName", ""),
                relative_path=attrib.get("RelativePath", ""),
                data_file=attrib.get("DataFile", FALSE),
                entry_point=attrib.get("EntryPoint", FALSE),
                is_main_config_file=attrib.get("IsMainConfigFile", FALSE),
                optional=attrib.get("Optional", FALSE),
                group_name=attrib.get("GroupName", ""),
            )
        )
    return entries
