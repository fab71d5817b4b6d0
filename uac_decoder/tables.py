"""
Bit and label tables for Audio Class descriptor fields.

Each table maps a bit position or small enumerated value to a human-readable
label. Tables are sparse: an index with no entry is reserved and renders as
undefined or is omitted, never as an error.
"""

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Union

UNDEFINED = "undefined"


class LabelTable:
    """Immutable, possibly sparse, index -> label mapping."""

    __slots__ = ("name", "_entries")

    def __init__(self, name: str, entries: Union[Mapping[int, str], Sequence[Optional[str]]]):
        if isinstance(entries, Mapping):
            items = dict(entries)
        else:
            items = {i: label for i, label in enumerate(entries) if label is not None}
        self.name = name
        self._entries = MappingProxyType(items)

    def __repr__(self) -> str:
        return f"LabelTable({self.name!r}, {len(self._entries)} entries)"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, index: int) -> bool:
        return index in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._entries))

    def __setattr__(self, name, value):
        if hasattr(self, "_entries"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        super().__setattr__(name, value)

    def get(self, index: int) -> Optional[str]:
        """Return the label for ``index``, or None for reserved/unused indices."""
        return self._entries.get(index)

    def label(self, index: int) -> str:
        """Return the label for ``index``, or ``"undefined"``."""
        label = self.get(index)
        return UNDEFINED if label is None else label

    def items(self) -> Iterable[tuple[int, str]]:
        return sorted(self._entries.items())

    @property
    def span(self) -> int:
        """One past the highest populated index."""
        return max(self._entries) + 1 if self._entries else 0

    def set_bits(self, value: int) -> list[str]:
        """Labels of the set bits in ``value``; unlabelled bits are skipped."""
        return [label for bit, label in self.items() if (value >> bit) & 0x1]


# ============================================================================
# Channel Names
# ============================================================================

# Order matters: index is the bit position in wChannelConfig
UAC1_CHANNEL_NAMES = LabelTable("uac1_channel_names", [
    "Left Front (L)", "Right Front (R)", "Center Front (C)",
    "Low Frequency Enhancement (LFE)", "Left Surround (LS)",
    "Right Surround (RS)", "Left of Center (LC)", "Right of Center (RC)",
    "Surround (S)", "Side Left (SL)", "Side Right (SR)", "Top (T)",
])

# Order matters: index is the bit position in bmChannelConfig
UAC2_CHANNEL_NAMES = LabelTable("uac2_channel_names", [
    "Front Left (FL)", "Front Right (FR)", "Front Center (FC)",
    "Low Frequency Effects (LFE)", "Back Left (BL)", "Back Right (BR)",
    "Front Left of Center (FLC)", "Front Right of Center (FRC)",
    "Back Center (BC)", "Side Left (SL)", "Side Right (SR)",
    "Top Center (TC)", "Top Front Left (TFL)", "Top Front Center (TFC)",
    "Top Front Right (TFR)", "Top Back Left (TBL)", "Top Back Center (TBC)",
    "Top Back Right (TBR)", "Top Front Left of Center (TFLC)",
    "Top Front Right of Center (TFRC)", "Left Low Frequency Effects (LLFE)",
    "Right Low Frequency Effects (RLFE)", "Top Side Left (TSL)",
    "Top Side Right (TSR)", "Bottom Center (BC)",
    "Back Left of Center (BLC)", "Back Right of Center (BRC)",
])


# ============================================================================
# Audio Control bmControls
# ============================================================================

UAC2_INTERFACE_HEADER_CONTROLS = LabelTable("uac2_interface_header_bmcontrols", [
    "Latency",
])

UAC2_INPUT_TERMINAL_CONTROLS = LabelTable("uac2_input_term_bmcontrols", [
    "Copy Protect", "Connector", "Overload", "Cluster", "Underflow", "Overflow",
])

UAC2_OUTPUT_TERMINAL_CONTROLS = LabelTable("uac2_output_term_bmcontrols", [
    "Copy Protect", "Connector", "Overload", "Underflow", "Overflow",
])

UAC2_MIXER_UNIT_CONTROLS = LabelTable("uac2_mixer_unit_bmcontrols", [
    "Cluster", "Underflow", "Overflow",
])

UAC2_SELECTOR_UNIT_CONTROLS = LabelTable("uac2_selector_unit_bmcontrols", [
    "Selector",
])

# Shared by UAC1 (one bit per control) and UAC2 (two bits per control)
FEATURE_UNIT_CONTROLS = LabelTable("uac_feature_unit_bmcontrols", [
    "Mute", "Volume", "Bass", "Mid", "Treble", "Graphic Equalizer",
    "Automatic Gain", "Delay", "Bass Boost", "Loudness", "Input gain",
    "Input gain pad", "Phase inverter",
])

UAC2_EXTENSION_UNIT_CONTROLS = LabelTable("uac2_extension_unit_bmcontrols", [
    "Enable", "Cluster", "Underflow", "Overflow",
])


# ============================================================================
# UAC 2.0 Clock Entities
# ============================================================================

UAC2_CLOCK_SOURCE_CONTROLS = LabelTable("uac2_clock_source_bmcontrols", [
    "Clock Frequency", "Clock Validity",
])

# bmAttributes D1..0
UAC2_CLOCK_SOURCE_TYPES = LabelTable("uac2_clk_src_bmattr", [
    "External", "Internal fixed", "Internal variable", "Internal programmable",
])

UAC3_CLOCK_SOURCE_ATTRIBUTES = LabelTable("uac3_clk_src_bmattr", [
    "External", "Internal", "(asynchronous)", "(synchronized to SOF)",
])

UAC2_CLOCK_SELECTOR_CONTROLS = LabelTable("uac2_clock_selector_bmcontrols", [
    "Clock Selector",
])

UAC2_CLOCK_MULTIPLIER_CONTROLS = LabelTable("uac2_clock_multiplier_bmcontrols", [
    "Clock Numerator", "Clock Denominator",
])


# ============================================================================
# Audio Streaming
# ============================================================================

UAC2_AS_INTERFACE_CONTROLS = LabelTable("uac2_as_interface_bmcontrols", [
    "Active Alternate Setting", "Valid Alternate Setting",
])

# wFormatTag is 0xTNNN: T selects the table, NNN indexes it
FORMAT_TYPE_I = 0x0
FORMAT_TYPE_II = 0x1
FORMAT_TYPE_III = 0x2

AUDIO_DATA_FORMAT_TYPE_I = LabelTable("audio_data_format_type_i", [
    "TYPE_I_UNDEFINED", "PCM", "PCM8", "IEEE_FLOAT", "ALAW", "MULAW",
])

AUDIO_DATA_FORMAT_TYPE_II = LabelTable("audio_data_format_type_ii", [
    "TYPE_II_UNDEFINED", "MPEG", "AC-3",
])

AUDIO_DATA_FORMAT_TYPE_III = LabelTable("audio_data_format_type_iii", [
    "TYPE_III_UNDEFINED", "IEC1937_AC-3", "IEC1937_MPEG-1_Layer1",
    "IEC1937_MPEG-Layer2/3/NOEXT", "IEC1937_MPEG-2_EXT",
    "IEC1937_MPEG-2_Layer1_LS", "IEC1937_MPEG-2_Layer2/3_LS",
])

UAC1_AS_ENDPOINT_ATTRIBUTES = LabelTable("uac1_as_endpoint_bmattributes", {
    0: "Sampling Frequency",
    1: "Pitch",
    2: "Audio Data Format Control",
    7: "MaxPacketsOnly",
})

UAC2_AS_ENDPOINT_ATTRIBUTES = LabelTable("uac2_as_endpoint_bmattributes", {
    7: "MaxPacketsOnly",
})

UAC2_AS_ISO_ENDPOINT_CONTROLS = LabelTable("uac2_as_isochronous_audio_data_endpoint_bmcontrols", [
    "Pitch", "Data Overrun", "Data Underrun",
])

LOCK_DELAY_UNITS = LabelTable("uac_as_isochronous_audio_data_endpoint_blockdelayunits", [
    "Undefined", "Milliseconds", "Decoded PCM samples",
])
