"""
Field decoder for USB Audio Class descriptor schemas.

This module walks a FieldSchema over a descriptor's raw bytes in a single
forward pass and produces a DecodedRecord: one DecodedField per scalar field
or array entry, plus the name -> value map used to resolve size and length
references.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .model import FieldSchema, FieldSpec, FieldType

logger = logging.getLogger(__name__)

# Access level of each two-bit control group value
CONTROL_ACCESS = {
    0b01: "read-only",
    0b10: "invalid",
    0b11: "read/write",
}


class DecodeError(Exception):
    """Exception raised when a descriptor cannot be decoded."""
    pass


class BufferUnderrun(DecodeError):
    """The schema needs more bytes than the descriptor holds."""

    def __init__(self, field_name: str, offset: int, needed: int, available: int):
        self.field_name = field_name
        self.offset = offset
        self.needed = needed
        self.available = available
        super().__init__(
            f"{field_name}: need {needed} byte(s) at offset {offset}, "
            f"only {available} available")


@dataclass(frozen=True)
class DecodedField:
    """One decoded scalar field or array entry."""
    spec: FieldSpec
    value: int
    offset: int
    size: int
    index: Optional[int] = None
    text: str = ""
    details: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> FieldType:
        return self.spec.kind

    @property
    def label(self) -> str:
        """Field name, with the entry index for arrays."""
        if self.index is None:
            return self.spec.name
        return f"{self.spec.name}({self.index})"


@dataclass
class DecodedRecord:
    """Result of decoding one descriptor against a schema."""
    schema: FieldSchema
    fields: list[DecodedField] = field(default_factory=list)
    values: dict[str, int] = field(default_factory=dict)
    length: int = 0
    consumed: int = 0
    trailing: bytes = b""

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def __getitem__(self, name: str) -> Union[int, list[int]]:
        spec = self.schema[self.schema.index_of(name)]
        entries = self.entries(name)
        if spec.is_array:
            return [entry.value for entry in entries]
        return entries[0].value

    def entries(self, name: str) -> list[DecodedField]:
        """All decoded entries of the named field, in order."""
        return [f for f in self.fields if f.name == name]

    def as_dict(self, rendered: bool = False) -> dict[str, Union[int, str, list]]:
        """
        Structured view of the record in schema order.

        Scalars map to their value, arrays to a list of values. With
        ``rendered`` the decoder's text is used instead of the raw value.
        """
        result: dict[str, Union[int, str, list]] = {}
        for spec in self.schema:
            entries = self.entries(spec.name)
            items = [entry.text if rendered else entry.value for entry in entries]
            if spec.is_array:
                result[spec.name] = items
            elif items:
                result[spec.name] = items[0]
        return result


class DecodeContext:
    """
    Cursor state for one decode call.

    Wraps the borrowed buffer in a memoryview that is released by close();
    values holds every scalar decoded so far, keyed by field name.
    """

    def __init__(self, buffer: bytes, length: Optional[int] = None, indent: int = 0):
        self.view = memoryview(buffer)
        self.length = len(self.view) if length is None else max(0, min(length, len(self.view)))
        self.pos = 0
        self.values: dict[str, int] = {}
        self.indent = indent

    def __enter__(self) -> "DecodeContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.view.release()

    @property
    def remaining(self) -> int:
        return self.length - self.pos

    def read(self, width: int, field_name: str) -> int:
        """Read ``width`` bytes as an unsigned little-endian integer and advance."""
        if width > self.remaining:
            raise BufferUnderrun(field_name, self.pos, width, self.remaining)
        value = int.from_bytes(self.view[self.pos:self.pos + width], "little")
        self.pos += width
        return value

    def record(self, name: str, value: int) -> None:
        if name in self.values:
            raise KeyError(f"Field '{name}' already decoded")
        self.values[name] = value

    def value_of(self, name: str) -> int:
        return self.values[name]

    def rest(self) -> bytes:
        return bytes(self.view[self.pos:self.length])


class FieldDecoder:
    """Interprets field schemas against descriptor bytes."""

    def decode(self, schema: FieldSchema, buffer: bytes,
               length: Optional[int] = None, indent: int = 0) -> DecodedRecord:
        """
        Decode ``buffer`` according to ``schema``.

        Args:
            schema: The field schema for the descriptor kind and generation
            buffer: Descriptor body bytes
            length: Total descriptor body length, if shorter than the buffer
            indent: Nesting depth, passed to custom decoders

        Returns:
            DecodedRecord with one entry per scalar field or array element

        Raises:
            BufferUnderrun: If the buffer ends before the schema does
        """
        with DecodeContext(buffer, length, indent) as ctx:
            decoded: list[DecodedField] = []

            for position, spec in enumerate(schema):
                width = self._resolve_width(spec, ctx)
                count = self._resolve_count(schema, position, spec, ctx, width)

                for i in range(count):
                    offset = ctx.pos
                    value = ctx.read(width, spec.name)
                    text, details = self._interpret(spec, value, width, ctx)
                    decoded.append(DecodedField(
                        spec=spec,
                        value=value,
                        offset=offset,
                        size=width,
                        index=i if spec.is_array else None,
                        text=text,
                        details=details,
                    ))
                    if not spec.is_array:
                        ctx.record(spec.name, value)

            trailing = ctx.rest()
            record = DecodedRecord(
                schema=schema,
                fields=decoded,
                values=dict(ctx.values),
                length=ctx.length,
                consumed=ctx.pos,
                trailing=trailing,
            )

        if trailing:
            logger.debug("%s: %d trailing byte(s) after last field", schema.name, len(trailing))
        logger.debug("Decoded %s: %d field(s), %d of %d byte(s)",
                     schema.name, len(decoded), record.consumed, record.length)
        return record

    def _resolve_width(self, spec: FieldSpec, ctx: DecodeContext) -> int:
        if spec.size_field is not None:
            return ctx.value_of(spec.size_field)
        return spec.byte_width

    def _resolve_count(self, schema: FieldSchema, position: int, spec: FieldSpec,
                       ctx: DecodeContext, width: int) -> int:
        rep = spec.repetition
        if rep is None:
            return 1
        if rep.count is not None:
            return rep.count
        if rep.remainder:
            available = ctx.remaining - schema.trailing_size(position)
            if width <= 0 or available <= 0:
                return 0
            return available // width

        count = ctx.value_of(rep.length_field1)
        if rep.bits:
            # One control entry per input-pin/channel pair
            count *= ctx.value_of(rep.length_field2)
        return count

    def _interpret(self, spec: FieldSpec, value: int, width: int,
                   ctx: DecodeContext) -> tuple[str, tuple[str, ...]]:
        """Return the field's value text and any per-bit detail lines."""
        kind = spec.kind
        hex_text = f"0x{value:0{width * 2}x}"

        if kind is FieldType.NUMBER or kind is FieldType.STRING_INDEX:
            return str(value), ()
        if kind is FieldType.CONSTANT:
            return hex_text, ()
        if kind is FieldType.BCD:
            return f"{value >> 8:x}.{value & 0xFF:02x}", ()
        if kind is FieldType.TERMINAL_TYPE:
            return f"0x{value:04x}", ()
        if kind is FieldType.NUMBER_WITH_SUFFIX:
            return f"{value}{spec.suffix_text}", ()
        if kind is FieldType.NUMBER_FROM_TABLE:
            return f"{value} {spec.label_table.label(value)}", ()
        if kind is FieldType.BITMAP:
            if spec.label_table is None:
                return hex_text, ()
            bits = tuple(f"bit {bit}" for bit in range(width * 8) if (value >> bit) & 0x1)
            return hex_text, bits
        if kind is FieldType.BITMAP_FROM_TABLE:
            return hex_text, tuple(spec.label_table.set_bits(value))
        if kind.bits_per_control:
            return hex_text, control_details(spec, value, width, kind.bits_per_control)
        if kind is FieldType.CUSTOM:
            return spec.custom_decoder(value, ctx.indent), ()

        raise DecodeError(f"{spec.name}: unhandled field type {kind.name}")


def control_details(spec: FieldSpec, value: int, width: int,
                    bits_per_control: int) -> tuple[str, ...]:
    """
    Describe the controls present in a bmControls value.

    One-bit groups (UAC1) list each present control. Two-bit groups (UAC2)
    add the access level; a zero group means the control is absent.
    """
    mask = (1 << bits_per_control) - 1
    details = []
    for index, name in spec.label_table.items():
        shift = index * bits_per_control
        if shift >= width * 8:
            break
        setting = (value >> shift) & mask
        if not setting:
            continue
        if bits_per_control == 1:
            details.append(f"{name} Control")
        else:
            details.append(f"{name} Control ({CONTROL_ACCESS[setting]})")
    return tuple(details)


_DEFAULT_DECODER = FieldDecoder()


def decode(schema: FieldSchema, buffer: bytes,
           length: Optional[int] = None, indent: int = 0) -> DecodedRecord:
    """
    Decode a descriptor body with the default FieldDecoder.

    Args:
        schema: The field schema to apply
        buffer: Descriptor body bytes
        length: Optional total length limit
        indent: Nesting depth for custom decoders

    Returns:
        DecodedRecord for the descriptor
    """
    return _DEFAULT_DECODER.decode(schema, buffer, length, indent)
