"""
USB Audio Class Descriptor Decoder

Schema-driven decoding of USB Audio Class (UAC1/UAC2/UAC3) class-specific
descriptors into structured records and human-readable text.
"""

__version__ = "0.1.0"

from .model import (
    ProtocolGeneration,
    InterfaceSubclass,
    DescriptorKind,
    FieldType,
    CustomDecoder,
    Repetition,
    FieldSpec,
    FieldSchema,
    MalformedSchema,
    get_terminal_type_name,
)
from .tables import LabelTable
from .registry import SchemaRegistry, UnsupportedCombination
from .schemas import REGISTRY
from .decoder import (
    DecodeContext,
    DecodedField,
    DecodedRecord,
    DecodeError,
    BufferUnderrun,
    FieldDecoder,
    decode,
)
from .render import RenderOptions, StringTable, render_record
from .dispatch import (
    RenderResult,
    RenderStatus,
    render_descriptor,
    render_class_descriptor,
    dump_descriptors,
)

__all__ = [
    "ProtocolGeneration",
    "InterfaceSubclass",
    "DescriptorKind",
    "FieldType",
    "CustomDecoder",
    "Repetition",
    "FieldSpec",
    "FieldSchema",
    "MalformedSchema",
    "get_terminal_type_name",
    "LabelTable",
    "SchemaRegistry",
    "UnsupportedCombination",
    "REGISTRY",
    "DecodeContext",
    "DecodedField",
    "DecodedRecord",
    "DecodeError",
    "BufferUnderrun",
    "FieldDecoder",
    "decode",
    "RenderOptions",
    "StringTable",
    "render_record",
    "RenderResult",
    "RenderStatus",
    "render_descriptor",
    "render_class_descriptor",
    "dump_descriptors",
]
