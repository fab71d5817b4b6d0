"""
Protocol-generation dispatch for Audio Class descriptors.

This module is the entry point for rendering: it selects a schema from the
registry, decodes the descriptor and renders it. Unsupported combinations and
decode failures come back as RenderResult values rather than exceptions, so
one bad descriptor never stops its siblings from being dumped.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .decoder import BufferUnderrun, DecodedRecord, DecodeError, decode
from .model import (
    INDENT,
    DescriptorKind,
    InterfaceSubclass,
    ProtocolGeneration,
    generation_label,
)
from .registry import SchemaRegistry, UnsupportedCombination
from .render import (
    RenderOptions,
    StringResolver,
    TerminalResolver,
    label_width,
    render_record,
)
from .schemas import REGISTRY

logger = logging.getLogger(__name__)

# Class-specific descriptor types
CS_INTERFACE = 0x24
CS_ENDPOINT = 0x25

# Size of the bLength, bDescriptorType, bDescriptorSubtype header
HEADER_SIZE = 3

_AC = InterfaceSubclass.AUDIO_CONTROL
_AS = InterfaceSubclass.AUDIO_STREAMING

# AudioControl descriptor subtypes, per generation
AC_SUBTYPES: dict[ProtocolGeneration, dict[int, DescriptorKind]] = {
    ProtocolGeneration.UAC1: {
        0x01: DescriptorKind.AC_HEADER,
        0x02: DescriptorKind.AC_INPUT_TERMINAL,
        0x03: DescriptorKind.AC_OUTPUT_TERMINAL,
        0x04: DescriptorKind.AC_MIXER_UNIT,
        0x05: DescriptorKind.AC_SELECTOR_UNIT,
        0x06: DescriptorKind.AC_FEATURE_UNIT,
        0x07: DescriptorKind.AC_PROCESSING_UNIT,
        0x08: DescriptorKind.AC_EXTENSION_UNIT,
    },
    ProtocolGeneration.UAC2: {
        0x01: DescriptorKind.AC_HEADER,
        0x02: DescriptorKind.AC_INPUT_TERMINAL,
        0x03: DescriptorKind.AC_OUTPUT_TERMINAL,
        0x04: DescriptorKind.AC_MIXER_UNIT,
        0x05: DescriptorKind.AC_SELECTOR_UNIT,
        0x06: DescriptorKind.AC_FEATURE_UNIT,
        0x07: DescriptorKind.AC_EFFECT_UNIT,
        0x08: DescriptorKind.AC_PROCESSING_UNIT,
        0x09: DescriptorKind.AC_EXTENSION_UNIT,
        0x0A: DescriptorKind.AC_CLOCK_SOURCE,
        0x0B: DescriptorKind.AC_CLOCK_SELECTOR,
        0x0C: DescriptorKind.AC_CLOCK_MULTIPLIER,
        0x0D: DescriptorKind.AC_SAMPLE_RATE_CONVERTER,
    },
    ProtocolGeneration.UAC3: {
        0x01: DescriptorKind.AC_HEADER,
        0x02: DescriptorKind.AC_INPUT_TERMINAL,
        0x03: DescriptorKind.AC_OUTPUT_TERMINAL,
        0x05: DescriptorKind.AC_MIXER_UNIT,
        0x06: DescriptorKind.AC_SELECTOR_UNIT,
        0x07: DescriptorKind.AC_FEATURE_UNIT,
        0x08: DescriptorKind.AC_EFFECT_UNIT,
        0x09: DescriptorKind.AC_PROCESSING_UNIT,
        0x0A: DescriptorKind.AC_EXTENSION_UNIT,
        0x0B: DescriptorKind.AC_CLOCK_SOURCE,
        0x0C: DescriptorKind.AC_CLOCK_SELECTOR,
        0x0D: DescriptorKind.AC_CLOCK_MULTIPLIER,
        0x0E: DescriptorKind.AC_SAMPLE_RATE_CONVERTER,
    },
}

# AudioStreaming descriptor subtypes (same numbering in every generation)
AS_SUBTYPES: dict[int, DescriptorKind] = {
    0x01: DescriptorKind.AS_INTERFACE,
}

# Class-specific endpoint descriptor subtypes
EP_SUBTYPES: dict[int, DescriptorKind] = {
    0x01: DescriptorKind.AS_ISO_ENDPOINT,
}

# Subtypes with no schema, named for display only
OTHER_SUBTYPE_NAMES: dict[tuple[InterfaceSubclass, int, int], str] = {
    (_AC, CS_INTERFACE, 0x04): "EXTENDED_TERMINAL",
    (_AS, CS_INTERFACE, 0x02): "FORMAT_TYPE",
    (_AS, CS_INTERFACE, 0x03): "FORMAT_SPECIFIC",
}

HEADINGS = {
    (_AC, CS_INTERFACE): "AudioControl Interface Descriptor:",
    (_AC, CS_ENDPOINT): "AudioControl Endpoint Descriptor:",
    (_AS, CS_INTERFACE): "AudioStreaming Interface Descriptor:",
    (_AS, CS_ENDPOINT): "AudioStreaming Endpoint Descriptor:",
}


class RenderStatus(Enum):
    """Outcome of rendering one descriptor."""
    OK = "ok"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass
class RenderResult:
    """Rendered descriptor, or the reason it could not be rendered."""
    status: RenderStatus
    text: str
    kind: Optional[DescriptorKind] = None
    generation: Optional[int] = None
    record: Optional[DecodedRecord] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is RenderStatus.OK

    @property
    def supported(self) -> bool:
        return self.status is not RenderStatus.UNSUPPORTED


def kind_for_subtype(subclass: InterfaceSubclass, descriptor_type: int, subtype: int,
                     generation: ProtocolGeneration) -> Optional[DescriptorKind]:
    """Map a class-specific descriptor's type and subtype to a descriptor kind."""
    if descriptor_type == CS_ENDPOINT:
        return EP_SUBTYPES.get(subtype) if subclass == _AS else None
    if descriptor_type != CS_INTERFACE:
        return None
    if subclass == _AC:
        return AC_SUBTYPES.get(generation, {}).get(subtype)
    if subclass == _AS:
        return AS_SUBTYPES.get(subtype)
    return None


def subtype_name(subclass: InterfaceSubclass, descriptor_type: int, subtype: int,
                 generation: ProtocolGeneration) -> str:
    kind = kind_for_subtype(subclass, descriptor_type, subtype, generation)
    if kind is not None:
        if kind is DescriptorKind.AS_INTERFACE or kind is DescriptorKind.AS_ISO_ENDPOINT:
            return "AS_GENERAL" if descriptor_type == CS_INTERFACE else "EP_GENERAL"
        return kind.name.split("_", 1)[1]
    return OTHER_SUBTYPE_NAMES.get((subclass, descriptor_type, subtype), "unknown")


def render_descriptor(kind: DescriptorKind,
                      generation: Union[ProtocolGeneration, int],
                      buffer: bytes,
                      length: Optional[int] = None,
                      indent: int = 0,
                      strings: Optional[StringResolver] = None,
                      terminals: Optional[TerminalResolver] = None,
                      options: Optional[RenderOptions] = None,
                      registry: SchemaRegistry = REGISTRY) -> RenderResult:
    """
    Render a descriptor body of the given kind and protocol generation.

    Args:
        kind: Descriptor kind
        generation: Protocol generation (0=UAC1, 1=UAC2, 2=UAC3)
        buffer: Descriptor body, without the three header bytes
        length: Body length, if shorter than the buffer
        indent: Nesting depth
        strings: String-descriptor resolver
        terminals: Terminal-type name resolver
        options: Renderer settings
        registry: Schema registry to consult

    Returns:
        RenderResult; unsupported combinations and decode failures are
        reported through its status, never raised
    """
    return _render_body(kind, generation, buffer, length, indent,
                        strings, terminals, options, registry)


def _render_body(kind, generation, buffer, length, indent, strings, terminals,
                 options, registry, header=()) -> RenderResult:
    """Decode and render a body, prefixed by already-formatted header lines."""
    pad = INDENT * indent
    header = list(header)

    try:
        schema = registry.require(kind, generation)
    except UnsupportedCombination as e:
        lines = _header_lines(header, indent) + [f"{pad}{e}"]
        return RenderResult(RenderStatus.UNSUPPORTED, "\n".join(lines),
                            kind=kind, generation=generation, error=e)

    try:
        record = decode(schema, buffer, length, indent)
    except DecodeError as e:
        logger.warning("%s %s: %s", generation_label(generation), kind.display_name, e)
        lines = _header_lines(header, indent) + [
            f"{pad}{generation_label(generation)} {kind.display_name}: decode failed: {e}"]
        return RenderResult(RenderStatus.FAILED, "\n".join(lines),
                            kind=kind, generation=generation, error=e)

    options = options or RenderOptions()
    width = options.name_width or label_width(record.fields, (label for label, _ in header))
    lines = _header_lines(header, indent, width)
    body = render_record(record, indent, strings, terminals, options, width)
    if body:
        lines.append(body)
    return RenderResult(RenderStatus.OK, "\n".join(lines),
                        kind=kind, generation=generation, record=record)


def _header_lines(header: list[tuple[str, str]], indent: int,
                  width: Optional[int] = None) -> list[str]:
    if width is None:
        width = max((len(label) for label, _ in header), default=0)
    pad = INDENT * indent
    return [f"{pad}{label:<{width}} {value}" for label, value in header]


def render_class_descriptor(descriptor: bytes,
                            subclass: Union[InterfaceSubclass, int],
                            generation: Union[ProtocolGeneration, int],
                            indent: int = 0,
                            strings: Optional[StringResolver] = None,
                            terminals: Optional[TerminalResolver] = None,
                            options: Optional[RenderOptions] = None,
                            registry: SchemaRegistry = REGISTRY) -> RenderResult:
    """
    Render a complete class-specific descriptor, header included.

    The descriptor kind is chosen from bDescriptorType and bDescriptorSubtype
    using the subtype numbering of the interface subclass and generation.

    Args:
        descriptor: Descriptor bytes starting at bLength
        subclass: Audio interface subclass (AudioControl or AudioStreaming)
        generation: Protocol generation
        indent: Nesting depth of the heading line

    Returns:
        RenderResult for the descriptor
    """
    pad = INDENT * indent
    try:
        subclass = InterfaceSubclass(subclass)
    except ValueError as e:
        logger.warning("%s", e)
        return RenderResult(RenderStatus.UNSUPPORTED,
                            f"{pad}Interface subclass {subclass}: not an audio subclass",
                            generation=generation, error=e)

    if len(descriptor) < HEADER_SIZE:
        error = BufferUnderrun("bDescriptorSubtype", 0, HEADER_SIZE, len(descriptor))
        logger.warning("Truncated descriptor header: %s", error)
        return RenderResult(RenderStatus.FAILED, f"{pad}Truncated descriptor: {error}",
                            generation=generation, error=error)

    length, descriptor_type, subtype = descriptor[0], descriptor[1], descriptor[2]
    if length < HEADER_SIZE or length > len(descriptor):
        error = DecodeError(f"bLength {length} invalid for {len(descriptor)} byte descriptor")
        logger.warning("%s", error)
        return RenderResult(RenderStatus.FAILED, f"{pad}Invalid descriptor: {error}",
                            generation=generation, error=error)

    heading = HEADINGS.get((subclass, descriptor_type),
                           f"Descriptor type 0x{descriptor_type:02x}:")
    kind = kind_for_subtype(subclass, descriptor_type, subtype, generation)
    header = [
        ("bLength", f"{length:5d}"),
        ("bDescriptorType", f"{descriptor_type:5d}"),
        ("bDescriptorSubtype",
         f"{subtype:5d} ({subtype_name(subclass, descriptor_type, subtype, generation)})"),
    ]

    if kind is None:
        lines = [f"{pad}{heading}"] + _header_lines(header, indent + 1)
        lines.append(f"{INDENT * (indent + 1)}{generation_label(generation)} "
                     f"subtype 0x{subtype:02x}: not yet supported")
        return RenderResult(RenderStatus.UNSUPPORTED, "\n".join(lines), generation=generation)

    result = _render_body(kind, generation, descriptor[HEADER_SIZE:length], None, indent + 1,
                          strings, terminals, options, registry, header)
    result.text = f"{pad}{heading}\n{result.text}"
    return result


def detect_generation(blob: bytes) -> Optional[ProtocolGeneration]:
    """
    Find the generation of a run of AudioControl descriptors.

    Walks the run to the first AC header and maps its bcdADC to a
    generation. UAC 3.0 headers carry no bcdADC, so a UAC 3.0 run has to be
    named explicitly (see ProtocolGeneration.from_interface_protocol).

    Returns:
        The generation, or None if the run has no readable header
    """
    pos = 0
    while pos + HEADER_SIZE <= len(blob):
        length = blob[pos]
        if length < HEADER_SIZE or pos + length > len(blob):
            break
        if blob[pos + 1] == CS_INTERFACE and blob[pos + 2] == 0x01 and length >= HEADER_SIZE + 2:
            bcd_adc = int.from_bytes(blob[pos + 3:pos + 5], "little")
            return ProtocolGeneration.from_bcd_adc(bcd_adc)
        pos += length
    return None


def dump_descriptors(blob: bytes,
                     subclass: Union[InterfaceSubclass, int],
                     generation: Union[ProtocolGeneration, int, None] = None,
                     indent: int = 0,
                     strings: Optional[StringResolver] = None,
                     terminals: Optional[TerminalResolver] = None,
                     options: Optional[RenderOptions] = None,
                     registry: SchemaRegistry = REGISTRY) -> list[RenderResult]:
    """
    Render a run of concatenated class-specific descriptors.

    Each descriptor is decoded independently; a failure is recorded in its
    own result and the walk continues with the next one. A bLength that is
    too small or overruns the blob ends the walk.

    With no generation, an AudioControl run takes it from its header's
    bcdADC; anything else falls back to UAC1.

    Returns:
        One RenderResult per descriptor
    """
    if generation is None:
        if subclass == _AC:
            generation = detect_generation(blob)
        if generation is None:
            generation = ProtocolGeneration.UAC1
        logger.debug("Using %s for descriptor run", generation_label(generation))

    results = []
    pos = 0

    while pos < len(blob):
        length = blob[pos]
        if length < HEADER_SIZE or pos + length > len(blob):
            error = DecodeError(
                f"bLength {length} at offset {pos} invalid, {len(blob) - pos} byte(s) left")
            logger.warning("Stopping descriptor walk: %s", error)
            results.append(RenderResult(RenderStatus.FAILED,
                                        f"{INDENT * indent}Invalid descriptor: {error}",
                                        generation=generation, error=error))
            break

        results.append(render_class_descriptor(blob[pos:pos + length], subclass, generation,
                                               indent, strings, terminals, options, registry))
        pos += length

    return results
