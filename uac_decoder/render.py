"""
Text rendering of decoded descriptors.

This module turns DecodedRecord instances into indented, lsusb-style text:
one line per field (or array entry), with bitmap and control labels listed
one per line beneath their field.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional

from .decoder import DecodedField, DecodedRecord
from .model import INDENT, FieldType, get_terminal_type_name

StringResolver = Callable[[int], str]
TerminalResolver = Callable[[int], str]


@dataclass
class RenderOptions:
    """Renderer settings."""
    name_width: Optional[int] = None  # None: widest label in the descriptor
    show_details: bool = True  # bitmap and control labels
    show_trailing: bool = True  # bytes left over after the last field


class StringTable:
    """
    String-descriptor resolver backed by a plain index -> string mapping.

    Index 0 means "no string" and resolves to "(none)"; indices the table
    does not know resolve to an empty string.
    """

    def __init__(self, strings: Optional[Mapping[int, str]] = None):
        self.strings = dict(strings or {})

    def __call__(self, index: int) -> str:
        if index == 0:
            return "(none)"
        return self.strings.get(index, "")


def format_value(field: DecodedField,
                 strings: StringResolver,
                 terminals: TerminalResolver) -> str:
    """Format the value column of a field line."""
    kind = field.kind
    value = field.value

    if kind is FieldType.NUMBER:
        return f"{value:5d}"
    if kind is FieldType.STRING_INDEX:
        return f"{value:5d} {strings(value)}"
    if kind is FieldType.TERMINAL_TYPE:
        return f"{field.text} {terminals(value)}"
    if kind is FieldType.NUMBER_WITH_SUFFIX:
        return f"{value:5d}{field.spec.suffix_text}"
    if kind is FieldType.NUMBER_FROM_TABLE:
        return f"{value:5d} {field.spec.label_table.label(value)}"
    return field.text


def label_width(fields: Iterable[DecodedField], extra: Iterable[str] = ()) -> int:
    """Width of the field-name column: the longest label."""
    labels = [f.label for f in fields] + list(extra)
    return max((len(label) for label in labels), default=0)


def render_fields(fields: Iterable[DecodedField], indent: int = 0,
                  strings: Optional[StringResolver] = None,
                  terminals: Optional[TerminalResolver] = None,
                  options: Optional[RenderOptions] = None,
                  width: Optional[int] = None) -> list[str]:
    """
    Render decoded fields as text lines.

    Args:
        fields: Decoded fields in schema order
        indent: Nesting depth of the descriptor
        strings: String-descriptor resolver (default: StringTable())
        terminals: Terminal-type name resolver (default: get_terminal_type_name)
        options: Renderer settings
        width: Field-name column width (default: longest label)

    Returns:
        List of output lines
    """
    fields = list(fields)
    strings = strings or StringTable()
    terminals = terminals or get_terminal_type_name
    options = options or RenderOptions()
    if width is None:
        width = options.name_width or label_width(fields)

    pad = INDENT * indent
    detail_pad = INDENT * (indent + 1)
    lines = []

    for field in fields:
        value = format_value(field, strings, terminals)
        lines.append(f"{pad}{field.label:<{width}} {value}".rstrip())
        if options.show_details:
            for detail in field.details:
                lines.append(f"{detail_pad}{detail}")

    return lines


def render_record(record: DecodedRecord, indent: int = 0,
                  strings: Optional[StringResolver] = None,
                  terminals: Optional[TerminalResolver] = None,
                  options: Optional[RenderOptions] = None,
                  width: Optional[int] = None) -> str:
    """
    Render a decoded descriptor as indented text.

    Args:
        record: The decoded descriptor
        indent: Nesting depth of the descriptor
        strings: String-descriptor resolver
        terminals: Terminal-type name resolver
        options: Renderer settings
        width: Field-name column width

    Returns:
        Rendered text, one field per line
    """
    options = options or RenderOptions()
    lines = render_fields(record.fields, indent, strings, terminals, options, width)

    if options.show_trailing and record.trailing:
        junk = " ".join(f"{b:02x}" for b in record.trailing)
        lines.append(f"{INDENT * indent}Trailing bytes: {junk}")

    return "\n".join(lines)
