"""
CustomFiles manifest handling for wdecustoms.

Modules
-------
codec : module
    Encode/decode the ArrayOfApplicationFile XML document.
merger : module
    Carry operator-edited attributes from the previous manifest forward.

Public API
----------
encode_manifest : function
    Encode files into manifest text (legacy field offset by default).
decode_manifest : function
    Decode manifest text, tolerant of the declared encoding label.
merge_manifest : function
    Merge resolved files into the previous registry entries.
build_fresh_manifest : function
    Fallback when no previous CustomFiles value exists.
"""

from .codec import decode_manifest, encode_manifest
from .merger import build_fresh_manifest, carry_over_attributes, merge_manifest

__all__ = [
    "build_fresh_manifest",
    "carry_over_attributes",
    "decode_manifest",
    "encode_manifest",
    "merge_manifest",
]
