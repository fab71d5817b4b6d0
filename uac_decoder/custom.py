"""
Custom rendering strategies for composite descriptor fields.

Each strategy takes the field's raw value and the current indent depth and
returns its own rendering: the first line follows the field name, any
further lines are already indented one level below the field.
"""

from .model import INDENT, CustomDecoder
from .tables import (
    UNDEFINED,
    FORMAT_TYPE_I,
    FORMAT_TYPE_II,
    FORMAT_TYPE_III,
    AUDIO_DATA_FORMAT_TYPE_I,
    AUDIO_DATA_FORMAT_TYPE_II,
    AUDIO_DATA_FORMAT_TYPE_III,
    UAC2_CLOCK_SOURCE_TYPES,
    UAC3_CLOCK_SOURCE_ATTRIBUTES,
)

# wFormatTag ranges: (first code, last code, table); each table covers its whole span
FORMAT_TAG_RANGES = tuple(
    (format_type << 12, (format_type << 12) + table.span - 1, table)
    for format_type, table in (
        (FORMAT_TYPE_I, AUDIO_DATA_FORMAT_TYPE_I),
        (FORMAT_TYPE_II, AUDIO_DATA_FORMAT_TYPE_II),
        (FORMAT_TYPE_III, AUDIO_DATA_FORMAT_TYPE_III),
    )
)

# Number of bmFormats bits that map onto type I format codes 1..5
BMFORMATS_TYPE_I_BITS = 5


def clock_source_attributes(value: int, indent: int) -> str:
    """UAC2 Clock Source bmAttributes: clock type plus SOF synchronisation."""
    text = f"{UAC2_CLOCK_SOURCE_TYPES.label(value & 0x3)} clock"
    if value & 0x4:
        text += f" {UAC3_CLOCK_SOURCE_ATTRIBUTES.label(3)}"
    return text


def format_tag_name(value: int) -> str:
    """
    Resolve a UAC1 wFormatTag to its format name.

    Format codes are 0xTNNN where T is the format type and NNN the code
    within that type. Only the codes listed in the type tables are named;
    everything else is undefined.
    """
    for first, last, table in FORMAT_TAG_RANGES:
        if first <= value <= last:
            return table.label(value & 0xFFF)
    return UNDEFINED


def as_interface_format_tag(value: int, indent: int) -> str:
    return format_tag_name(value)


def as_interface_formats(value: int, indent: int) -> str:
    """UAC2 AS Interface bmFormats: one line per supported type I format."""
    lines = [f"0x{value:08x}"]
    pad = INDENT * (indent + 1)
    for bit in range(BMFORMATS_TYPE_I_BITS):
        if (value >> bit) & 0x1:
            lines.append(f"{pad}{AUDIO_DATA_FORMAT_TYPE_I.label(bit + 1)}")
    return "\n".join(lines)


UAC2_CLOCK_SOURCE_ATTRIBUTES = CustomDecoder("uac2_clk_src_bmattr", clock_source_attributes)
UAC1_FORMAT_TAG = CustomDecoder("uac1_as_interface_wformattag", as_interface_format_tag)
UAC2_FORMATS = CustomDecoder("uac2_as_interface_bmformats", as_interface_formats)
