"""
Data model for USB Audio Class descriptor schemas.

This module defines the protocol generations, descriptor kinds and field
types understood by the decoder, together with the immutable FieldSpec and
FieldSchema types that describe how a descriptor's byte stream is laid out.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .tables import LabelTable

# One level of descriptor nesting in rendered text
INDENT = "  "


class MalformedSchema(ValueError):
    """Exception raised when a field schema violates its construction rules."""
    pass


class ProtocolGeneration(IntEnum):
    """USB Audio Class specification generation."""
    UAC1 = 0
    UAC2 = 1
    UAC3 = 2

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def from_interface_protocol(cls, protocol: int) -> "ProtocolGeneration":
        """Map an interface bInterfaceProtocol value to a generation."""
        protocols = {
            0x00: cls.UAC1,
            0x20: cls.UAC2,
            0x30: cls.UAC3,
        }
        if protocol not in protocols:
            raise ValueError(f"Unknown audio interface protocol 0x{protocol:02X}")
        return protocols[protocol]

    @classmethod
    def from_bcd_adc(cls, bcd_adc: int) -> "ProtocolGeneration":
        """Map an AC header bcdADC release number to a generation."""
        if bcd_adc >= 0x0300:
            return cls.UAC3
        if bcd_adc >= 0x0200:
            return cls.UAC2
        return cls.UAC1


def generation_label(generation: int) -> str:
    """Display name for a generation index, including ones with no enum member."""
    try:
        return ProtocolGeneration(generation).label
    except ValueError:
        return f"UAC generation {generation}"


class InterfaceSubclass(IntEnum):
    """Audio interface subclass codes."""
    AUDIO_CONTROL = 0x01
    AUDIO_STREAMING = 0x02


class DescriptorKind(Enum):
    """Audio Class descriptor kinds that have field schemas."""
    AC_HEADER = "Header"
    AC_INPUT_TERMINAL = "Input Terminal"
    AC_OUTPUT_TERMINAL = "Output Terminal"
    AC_MIXER_UNIT = "Mixer Unit"
    AC_SELECTOR_UNIT = "Selector Unit"
    AC_FEATURE_UNIT = "Feature Unit"
    AC_EFFECT_UNIT = "Effect Unit"
    AC_PROCESSING_UNIT = "Processing Unit"
    AC_EXTENSION_UNIT = "Extension Unit"
    AC_CLOCK_SOURCE = "Clock Source"
    AC_CLOCK_SELECTOR = "Clock Selector"
    AC_CLOCK_MULTIPLIER = "Clock Multiplier"
    AC_SAMPLE_RATE_CONVERTER = "Sample Rate Converter"
    AS_INTERFACE = "AS Interface"
    AS_ISO_ENDPOINT = "AS Isochronous Audio Data Endpoint"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "DescriptorKind":
        """Look up a kind by enum name, case-insensitively, with or without prefix."""
        key = name.strip().upper().replace("-", "_").replace(" ", "_")
        for kind in cls:
            if key in (kind.name, kind.name.split("_", 1)[1]):
                return kind
        raise ValueError(f"Unknown descriptor kind: {name}")


class FieldType(Enum):
    """How a field's raw value is interpreted."""
    NUMBER = "number"
    CONSTANT = "constant"
    BCD = "bcd"
    STRING_INDEX = "string_index"
    TERMINAL_TYPE = "terminal_type"
    NUMBER_WITH_SUFFIX = "number_with_suffix"
    NUMBER_FROM_TABLE = "number_from_table"
    BITMAP = "bitmap"
    BITMAP_FROM_TABLE = "bitmap_from_table"
    CONTROL_BITS_1 = "control_bits_1"
    CONTROL_BITS_2 = "control_bits_2"
    CUSTOM = "custom"

    @property
    def bits_per_control(self) -> int:
        """Control-bit group width, or 0 for non-control types."""
        if self is FieldType.CONTROL_BITS_1:
            return 1
        if self is FieldType.CONTROL_BITS_2:
            return 2
        return 0

    @property
    def needs_table(self) -> bool:
        return self in (
            FieldType.NUMBER_FROM_TABLE,
            FieldType.BITMAP_FROM_TABLE,
            FieldType.CONTROL_BITS_1,
            FieldType.CONTROL_BITS_2,
        )


@dataclass(frozen=True)
class CustomDecoder:
    """A named rendering strategy for fields the generic types cannot express."""
    name: str
    func: Callable[[int, int], str] = field(compare=False)

    def __call__(self, value: int, indent: int) -> str:
        return self.func(value, indent)


@dataclass(frozen=True)
class Repetition:
    """
    Array dimensions of a field.

    Exactly one of the following is used:
      - count: a fixed number of entries
      - length_field1: entries given by an earlier field's value
      - length_field1 * length_field2 with bits=True: one entry per
        input-pin/channel pair of a control matrix
      - remainder: entries fill the rest of the descriptor, less the bytes
        of the fields that follow
    """
    count: Optional[int] = None
    length_field1: Optional[str] = None
    length_field2: Optional[str] = None
    bits: bool = False
    remainder: bool = False

    @classmethod
    def fixed(cls, count: int) -> "Repetition":
        return cls(count=count)

    @classmethod
    def by_field(cls, name: str) -> "Repetition":
        return cls(length_field1=name)

    @classmethod
    def matrix(cls, rows: str, columns: str) -> "Repetition":
        return cls(length_field1=rows, length_field2=columns, bits=True)

    @classmethod
    def rest(cls) -> "Repetition":
        return cls(remainder=True)

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(name for name in (self.length_field1, self.length_field2) if name)


@dataclass(frozen=True)
class FieldSpec:
    """One entry of a field schema."""
    name: str
    kind: FieldType
    byte_width: Optional[int] = None
    size_field: Optional[str] = None
    repetition: Optional[Repetition] = None
    label_table: Optional["LabelTable"] = None
    custom_decoder: Optional[CustomDecoder] = None
    suffix_text: str = ""

    @property
    def is_array(self) -> bool:
        return self.repetition is not None

    @property
    def references(self) -> tuple[str, ...]:
        """Names of earlier fields this field depends on."""
        refs = (self.size_field,) if self.size_field else ()
        if self.repetition:
            refs += self.repetition.references
        return refs


@dataclass(frozen=True)
class FieldSchema:
    """
    An ordered, immutable sequence of FieldSpec entries.

    The schema is validated once on construction; any dependency on a field
    that is not a strictly earlier scalar raises MalformedSchema.
    """
    name: str
    fields: tuple[FieldSpec, ...]

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        self._validate()

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, index: int) -> FieldSpec:
        return self.fields[index]

    def index_of(self, name: str) -> int:
        for i, spec in enumerate(self.fields):
            if spec.name == name:
                return i
        raise KeyError(name)

    def trailing_size(self, position: int) -> int:
        """Bytes occupied by the fields after ``position`` (all literal scalars)."""
        return sum(spec.byte_width for spec in self.fields[position + 1:])

    def _validate(self) -> None:
        seen: dict[str, FieldSpec] = {}
        remainder_at: Optional[int] = None

        for position, spec in enumerate(self.fields):
            where = f"{self.name}.{spec.name}"

            if spec.name in seen:
                raise MalformedSchema(f"{where}: duplicate field name")

            if (spec.byte_width is None) == (spec.size_field is None):
                raise MalformedSchema(f"{where}: needs exactly one of byte_width or size_field")
            if spec.byte_width is not None and spec.byte_width not in (1, 2, 4):
                raise MalformedSchema(f"{where}: byte_width must be 1, 2 or 4")

            for ref in spec.references:
                if ref not in seen:
                    raise MalformedSchema(
                        f"{where}: references '{ref}', which is not an earlier field")
                if seen[ref].is_array:
                    raise MalformedSchema(f"{where}: references array field '{ref}'")

            rep = spec.repetition
            if rep is not None:
                modes = sum((rep.count is not None, rep.length_field1 is not None, rep.remainder))
                if modes != 1:
                    raise MalformedSchema(f"{where}: repetition needs exactly one count source")
                if rep.count is not None and rep.count < 0:
                    raise MalformedSchema(f"{where}: negative repetition count")
                if rep.bits != (rep.length_field2 is not None):
                    raise MalformedSchema(f"{where}: bits mode needs length_field1 and length_field2")
                if rep.remainder:
                    if remainder_at is not None:
                        raise MalformedSchema(f"{where}: only one open-ended array is allowed")
                    remainder_at = position

            if remainder_at is not None and position > remainder_at:
                if spec.is_array or spec.byte_width is None:
                    raise MalformedSchema(
                        f"{where}: fields after an open-ended array must be fixed-size scalars")

            if (spec.kind is FieldType.CUSTOM) != (spec.custom_decoder is not None):
                raise MalformedSchema(f"{where}: custom decoder must be set exactly for CUSTOM fields")
            if spec.kind.needs_table and spec.label_table is None:
                raise MalformedSchema(f"{where}: {spec.kind.name} needs a label table")

            seen[spec.name] = spec


# Mapping of terminal type codes to human-readable descriptions
TERMINAL_TYPE_NAMES: dict[int, str] = {
    0x0100: "USB Undefined",
    0x0101: "USB Streaming",
    0x01FF: "USB Vendor Specific",
    0x0200: "Input Undefined",
    0x0201: "Microphone",
    0x0202: "Desktop Microphone",
    0x0203: "Personal Microphone",
    0x0204: "Omni-directional Microphone",
    0x0205: "Microphone Array",
    0x0206: "Processing Microphone Array",
    0x0300: "Output Undefined",
    0x0301: "Speaker",
    0x0302: "Headphones",
    0x0303: "Head Mounted Display Audio",
    0x0304: "Desktop Speaker",
    0x0305: "Room Speaker",
    0x0306: "Communication Speaker",
    0x0307: "Low Frequency Effects Speaker",
    0x0400: "Bi-directional Undefined",
    0x0401: "Handset",
    0x0402: "Headset",
    0x0403: "Speakerphone (no echo reduction)",
    0x0404: "Echo-suppressing Speakerphone",
    0x0405: "Echo-canceling Speakerphone",
    0x0500: "Telephony Undefined",
    0x0501: "Phone Line",
    0x0502: "Telephone",
    0x0503: "Down Line Phone",
    0x0600: "External Undefined",
    0x0601: "Analog Connector",
    0x0602: "Digital Audio Interface",
    0x0603: "Line Connector",
    0x0604: "Legacy Audio Connector",
    0x0605: "S/PDIF Interface",
    0x0606: "1394 DA Stream",
    0x0607: "1394 DV Stream",
    0x0700: "Embedded Undefined",
    0x0701: "Level Calibration Noise Source",
    0x0702: "Equalization Noise",
    0x0703: "CD Player",
    0x0704: "DAT",
    0x0705: "DCC",
    0x0706: "MiniDisk",
    0x0707: "Analog Tape",
    0x0708: "Phonograph",
    0x0709: "VCR Audio",
    0x070A: "Video Disc Audio",
    0x070B: "DVD Audio",
    0x070C: "TV Tuner Audio",
    0x070D: "Satellite Receiver Audio",
    0x070E: "Cable Tuner Audio",
    0x070F: "DSS Audio",
    0x0710: "Radio Receiver",
    0x0711: "Radio Transmitter",
    0x0712: "Multi-track Recorder",
    0x0713: "Synthesizer",
    0x0714: "Piano",
    0x0715: "Guitar",
    0x0716: "Drums/Rhythm",
    0x0717: "Other Musical Instrument",
}


def get_terminal_type_name(type_code: int) -> str:
    """Get human-readable name for a terminal type code."""
    if type_code in TERMINAL_TYPE_NAMES:
        return TERMINAL_TYPE_NAMES[type_code]
    # Categorize by high byte
    category = (type_code >> 8) & 0xFF
    categories = {
        0x01: "USB",
        0x02: "Input",
        0x03: "Output",
        0x04: "Bi-directional",
        0x05: "Telephony",
        0x06: "External",
        0x07: "Embedded",
    }
    cat_name = categories.get(category, "Unknown")
    return f"{cat_name} (0x{type_code:04X})"
