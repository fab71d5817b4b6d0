"""
Field schemas for USB Audio Class descriptors.

One schema per (descriptor kind, protocol generation) pair, following the
descriptor tables of the UAC 1.0 and UAC 2.0 specifications. Each schema
covers the descriptor body, i.e. everything after the bLength,
bDescriptorType and bDescriptorSubtype header bytes. UAC 3.0 layouts are not
defined yet.
"""

from typing import Optional

from .custom import UAC1_FORMAT_TAG, UAC2_CLOCK_SOURCE_ATTRIBUTES, UAC2_FORMATS
from .model import (
    CustomDecoder,
    DescriptorKind,
    FieldSchema,
    FieldSpec,
    FieldType,
    ProtocolGeneration,
    Repetition,
)
from .registry import SchemaRegistry
from .tables import (
    LabelTable,
    UAC1_CHANNEL_NAMES,
    UAC2_CHANNEL_NAMES,
    UAC2_INTERFACE_HEADER_CONTROLS,
    UAC2_INPUT_TERMINAL_CONTROLS,
    UAC2_OUTPUT_TERMINAL_CONTROLS,
    UAC2_MIXER_UNIT_CONTROLS,
    UAC2_SELECTOR_UNIT_CONTROLS,
    FEATURE_UNIT_CONTROLS,
    UAC2_EXTENSION_UNIT_CONTROLS,
    UAC2_CLOCK_SOURCE_CONTROLS,
    UAC2_CLOCK_SELECTOR_CONTROLS,
    UAC2_CLOCK_MULTIPLIER_CONTROLS,
    UAC2_AS_INTERFACE_CONTROLS,
    UAC1_AS_ENDPOINT_ATTRIBUTES,
    UAC2_AS_ENDPOINT_ATTRIBUTES,
    UAC2_AS_ISO_ENDPOINT_CONTROLS,
    LOCK_DELAY_UNITS,
)

NUMBER = FieldType.NUMBER
CONSTANT = FieldType.CONSTANT
BCD = FieldType.BCD
STRING_INDEX = FieldType.STRING_INDEX
TERMINAL_TYPE = FieldType.TERMINAL_TYPE
NUMBER_WITH_SUFFIX = FieldType.NUMBER_WITH_SUFFIX
NUMBER_FROM_TABLE = FieldType.NUMBER_FROM_TABLE
BITMAP = FieldType.BITMAP
BITMAP_FROM_TABLE = FieldType.BITMAP_FROM_TABLE
CONTROL_BITS_1 = FieldType.CONTROL_BITS_1
CONTROL_BITS_2 = FieldType.CONTROL_BITS_2
CUSTOM = FieldType.CUSTOM


def _f(name: str, size, kind: FieldType,
       table: Optional[LabelTable] = None,
       repeat: Optional[Repetition] = None,
       custom: Optional[CustomDecoder] = None,
       suffix: str = "") -> FieldSpec:
    """Build a FieldSpec; ``size`` is a byte width or the name of a size field."""
    if isinstance(size, str):
        return FieldSpec(name, kind, size_field=size, repetition=repeat,
                         label_table=table, custom_decoder=custom, suffix_text=suffix)
    return FieldSpec(name, kind, byte_width=size, repetition=repeat,
                     label_table=table, custom_decoder=custom, suffix_text=suffix)


def _schema(name: str, *fields: FieldSpec) -> FieldSchema:
    return FieldSchema(name, fields)


# ============================================================================
# Audio Control Interface Descriptors
# ============================================================================

# UAC1: 4.3.2 Class-Specific AC Interface Descriptor; Table 4-2
UAC1_AC_HEADER = _schema(
    "uac1_ac_header",
    _f("bcdADC", 2, BCD),
    _f("wTotalLength", 2, CONSTANT),
    _f("bInCollection", 1, CONSTANT),
    _f("baInterfaceNr", 1, NUMBER, repeat=Repetition.rest()),
)

# UAC2: 4.7.2 Class-Specific AC Interface Descriptor; Table 4-5
UAC2_AC_HEADER = _schema(
    "uac2_ac_header",
    _f("bcdADC", 2, BCD),
    _f("bCategory", 1, CONSTANT),
    _f("wTotalLength", 2, NUMBER),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_INTERFACE_HEADER_CONTROLS),
)

# UAC2: 4.7.2.10 Effect Unit Descriptor; Table 4-15
UAC2_AC_EFFECT_UNIT = _schema(
    "uac2_ac_effect_unit",
    _f("bUnitID", 1, NUMBER),
    _f("wEffectType", 2, CONSTANT),
    _f("bSourceID", 1, CONSTANT),
    _f("bmaControls", 4, BITMAP, repeat=Repetition.rest()),
    _f("iEffects", 1, STRING_INDEX),
)

# UAC1: 4.3.2.1 Input Terminal Descriptor; Table 4-3
UAC1_AC_INPUT_TERMINAL = _schema(
    "uac1_ac_input_terminal",
    _f("bTerminalID", 1, NUMBER),
    _f("wTerminalType", 2, TERMINAL_TYPE),
    _f("bAssocTerminal", 1, CONSTANT),
    _f("bNrChannels", 1, NUMBER),
    _f("wChannelConfig", 2, BITMAP_FROM_TABLE, UAC1_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("iTerminal", 1, STRING_INDEX),
)

# UAC2: 4.7.2.4 Input Terminal Descriptor; Table 4-9
UAC2_AC_INPUT_TERMINAL = _schema(
    "uac2_ac_input_terminal",
    _f("bTerminalID", 1, NUMBER),
    _f("wTerminalType", 2, TERMINAL_TYPE),
    _f("bAssocTerminal", 1, CONSTANT),
    _f("bCSourceID", 1, CONSTANT),
    _f("bNrChannels", 1, NUMBER),
    _f("bmChannelConfig", 4, BITMAP_FROM_TABLE, UAC2_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bmControls", 2, CONTROL_BITS_2, UAC2_INPUT_TERMINAL_CONTROLS),
    _f("iTerminal", 1, STRING_INDEX),
)

# UAC1: 4.3.2.2 Output Terminal Descriptor; Table 4-4
UAC1_AC_OUTPUT_TERMINAL = _schema(
    "uac1_ac_output_terminal",
    _f("bTerminalID", 1, NUMBER),
    _f("wTerminalType", 2, TERMINAL_TYPE),
    _f("bAssocTerminal", 1, NUMBER),
    _f("bSourceID", 1, NUMBER),
    _f("iTerminal", 1, STRING_INDEX),
)

# UAC2: 4.7.2.5 Output Terminal Descriptor; Table 4-10
UAC2_AC_OUTPUT_TERMINAL = _schema(
    "uac2_ac_output_terminal",
    _f("bTerminalID", 1, NUMBER),
    _f("wTerminalType", 2, TERMINAL_TYPE),
    _f("bAssocTerminal", 1, NUMBER),
    _f("bSourceID", 1, NUMBER),
    _f("bCSourceID", 1, NUMBER),
    _f("bmControls", 2, CONTROL_BITS_2, UAC2_OUTPUT_TERMINAL_CONTROLS),
    _f("iTerminal", 1, STRING_INDEX),
)

# UAC1: 4.3.2.3 Mixer Unit Descriptor; Table 4-5
UAC1_AC_MIXER_UNIT = _schema(
    "uac1_ac_mixer_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("wChannelConfig", 2, BITMAP_FROM_TABLE, UAC1_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bmControls", 1, BITMAP, repeat=Repetition.matrix("bNrInPins", "bNrChannels")),
    _f("iMixer", 1, STRING_INDEX),
)

# UAC2: 4.7.2.6 Mixer Unit Descriptor; Table 4-11
UAC2_AC_MIXER_UNIT = _schema(
    "uac2_ac_mixer_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("bmChannelConfig", 4, BITMAP_FROM_TABLE, UAC2_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bmMixerControls", 1, BITMAP, repeat=Repetition.matrix("bNrInPins", "bNrChannels")),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_MIXER_UNIT_CONTROLS),
    _f("iMixer", 1, STRING_INDEX),
)

# UAC1: 4.3.2.4 Selector Unit Descriptor; Table 4-6
UAC1_AC_SELECTOR_UNIT = _schema(
    "uac1_ac_selector_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("iSelector", 1, STRING_INDEX),
)

# UAC2: 4.7.2.7 Selector Unit Descriptor; Table 4-12
UAC2_AC_SELECTOR_UNIT = _schema(
    "uac2_ac_selector_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_SELECTOR_UNIT_CONTROLS),
    _f("iSelector", 1, STRING_INDEX),
)

# UAC1: 4.3.2.6 Processing Unit Descriptor; Table 4-8
UAC1_AC_PROCESSING_UNIT = _schema(
    "uac1_ac_processing_unit",
    _f("bUnitID", 1, NUMBER),
    _f("wProcessType", 2, CONSTANT),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("wChannelConfig", 2, BITMAP_FROM_TABLE, UAC1_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bControlSize", 1, NUMBER),
    _f("bmControls", 1, BITMAP, repeat=Repetition.by_field("bControlSize")),
    _f("iProcessing", 1, STRING_INDEX),
    _f("Process-specific", 1, BITMAP, repeat=Repetition.rest()),
)

# UAC2: 4.7.2.11 Processing Unit Descriptor; Table 4-20
UAC2_AC_PROCESSING_UNIT = _schema(
    "uac2_ac_processing_unit",
    _f("bUnitID", 1, NUMBER),
    _f("wProcessType", 2, CONSTANT),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("bmChannelConfig", 4, BITMAP_FROM_TABLE, UAC2_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bControlSize", 1, NUMBER),
    _f("bmControls", 2, BITMAP, repeat=Repetition.by_field("bControlSize")),
    _f("iProcessing", 1, STRING_INDEX),
    _f("Process-specific", 1, BITMAP, repeat=Repetition.rest()),
)

# UAC1: 4.3.2.5 Feature Unit Descriptor; Table 4-7
UAC1_AC_FEATURE_UNIT = _schema(
    "uac1_ac_feature_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bSourceID", 1, CONSTANT),
    _f("bControlSize", 1, NUMBER),
    _f("bmaControls", "bControlSize", CONTROL_BITS_1, FEATURE_UNIT_CONTROLS,
       repeat=Repetition.rest()),
    _f("iFeature", 1, STRING_INDEX),
)

# UAC2: 4.7.2.8 Feature Unit Descriptor; Table 4-13
UAC2_AC_FEATURE_UNIT = _schema(
    "uac2_ac_feature_unit",
    _f("bUnitID", 1, NUMBER),
    _f("bSourceID", 1, CONSTANT),
    _f("bmaControls", 4, CONTROL_BITS_2, FEATURE_UNIT_CONTROLS, repeat=Repetition.rest()),
    _f("iFeature", 1, STRING_INDEX),
)

# UAC1: 4.3.2.7 Extension Unit Descriptor; Table 4-15
UAC1_AC_EXTENSION_UNIT = _schema(
    "uac1_ac_extension_unit",
    _f("bUnitID", 1, NUMBER),
    _f("wExtensionCode", 2, CONSTANT),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("wChannelConfig", 2, BITMAP_FROM_TABLE, UAC1_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bControlSize", 1, NUMBER),
    _f("bmControls", 1, BITMAP, repeat=Repetition.by_field("bControlSize")),
    _f("iExtension", 1, STRING_INDEX),
)

# UAC2: 4.7.2.12 Extension Unit Descriptor; Table 4-24
UAC2_AC_EXTENSION_UNIT = _schema(
    "uac2_ac_extension_unit",
    _f("bUnitID", 1, NUMBER),
    _f("wExtensionCode", 2, CONSTANT),
    _f("bNrInPins", 1, NUMBER),
    _f("baSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bNrChannels", 1, NUMBER),
    _f("bmChannelConfig", 4, BITMAP_FROM_TABLE, UAC2_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_EXTENSION_UNIT_CONTROLS),
    _f("iExtension", 1, STRING_INDEX),
)


# ============================================================================
# UAC 2.0 Clock Entities
# ============================================================================

# UAC2: 4.7.2.1 Clock Source Descriptor; Table 4-6
UAC2_AC_CLOCK_SOURCE = _schema(
    "uac2_ac_clock_source",
    _f("bClockID", 1, CONSTANT),
    _f("bmAttributes", 1, CUSTOM, custom=UAC2_CLOCK_SOURCE_ATTRIBUTES),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_CLOCK_SOURCE_CONTROLS),
    _f("bAssocTerminal", 1, CONSTANT),
    _f("iClockSource", 1, STRING_INDEX),
)

# UAC2: 4.7.2.2 Clock Selector Descriptor; Table 4-7
UAC2_AC_CLOCK_SELECTOR = _schema(
    "uac2_ac_clock_selector",
    _f("bClockID", 1, NUMBER),
    _f("bNrInPins", 1, NUMBER),
    _f("baCSourceID", 1, NUMBER, repeat=Repetition.by_field("bNrInPins")),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_CLOCK_SELECTOR_CONTROLS),
    _f("iClockSelector", 1, STRING_INDEX),
)

# UAC2: 4.7.2.3 Clock Multiplier Descriptor; Table 4-8
UAC2_AC_CLOCK_MULTIPLIER = _schema(
    "uac2_ac_clock_multiplier",
    _f("bClockID", 1, CONSTANT),
    _f("bCSourceID", 1, NUMBER),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_CLOCK_MULTIPLIER_CONTROLS),
    _f("iClockMultiplier", 1, STRING_INDEX),
)

# UAC2: 4.7.2.9 Sampling Rate Converter Descriptor; Table 4-14
UAC2_AC_SAMPLE_RATE_CONVERTER = _schema(
    "uac2_ac_sample_rate_converter",
    _f("bUnitID", 1, CONSTANT),
    _f("bSourceID", 1, CONSTANT),
    _f("bCSourceInID", 1, CONSTANT),
    _f("bCSourceOutID", 1, CONSTANT),
    _f("iSRC", 1, STRING_INDEX),
)


# ============================================================================
# Audio Streaming Interface Descriptors
# ============================================================================

# UAC1: 4.5.2 Class-Specific AS Interface Descriptor; Table 4-19
UAC1_AS_INTERFACE = _schema(
    "uac1_as_interface",
    _f("bTerminalLink", 1, CONSTANT),
    _f("bDelay", 1, NUMBER_WITH_SUFFIX, suffix=" frames"),
    _f("wFormatTag", 2, CUSTOM, custom=UAC1_FORMAT_TAG),
)

# UAC2: 4.9.2 Class-Specific AS Interface Descriptor; Table 4-27
UAC2_AS_INTERFACE = _schema(
    "uac2_as_interface",
    _f("bTerminalLink", 1, NUMBER),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_AS_INTERFACE_CONTROLS),
    _f("bFormatType", 1, CONSTANT),
    _f("bmFormats", 4, CUSTOM, custom=UAC2_FORMATS),
    _f("bNrChannels", 1, NUMBER),
    _f("bmChannelConfig", 4, BITMAP_FROM_TABLE, UAC2_CHANNEL_NAMES),
    _f("iChannelNames", 1, STRING_INDEX),
)

# UAC1: 4.6.1.2 Class-Specific AS Isochronous Audio Data Endpoint Descriptor; Table 4-21
UAC1_AS_ISO_ENDPOINT = _schema(
    "uac1_as_isochronous_audio_data_endpoint",
    _f("bmAttributes", 1, BITMAP_FROM_TABLE, UAC1_AS_ENDPOINT_ATTRIBUTES),
    _f("bLockDelayUnits", 1, NUMBER_FROM_TABLE, LOCK_DELAY_UNITS),
    _f("wLockDelay", 2, NUMBER),
)

# UAC2: 4.10.1.2 Class-Specific AS Isochronous Audio Data Endpoint Descriptor; Table 4-34
UAC2_AS_ISO_ENDPOINT = _schema(
    "uac2_as_isochronous_audio_data_endpoint",
    _f("bmAttributes", 1, BITMAP_FROM_TABLE, UAC2_AS_ENDPOINT_ATTRIBUTES),
    _f("bmControls", 1, CONTROL_BITS_2, UAC2_AS_ISO_ENDPOINT_CONTROLS),
    _f("bLockDelayUnits", 1, NUMBER_FROM_TABLE, LOCK_DELAY_UNITS),
    _f("wLockDelay", 2, NUMBER),
)


# ============================================================================
# Registry
# ============================================================================

# Per kind: (UAC1, UAC2, UAC3); None means not defined for that generation
SCHEMA_TABLE: dict[DescriptorKind, tuple[Optional[FieldSchema], ...]] = {
    DescriptorKind.AC_HEADER: (UAC1_AC_HEADER, UAC2_AC_HEADER, None),
    DescriptorKind.AC_INPUT_TERMINAL: (UAC1_AC_INPUT_TERMINAL, UAC2_AC_INPUT_TERMINAL, None),
    DescriptorKind.AC_OUTPUT_TERMINAL: (UAC1_AC_OUTPUT_TERMINAL, UAC2_AC_OUTPUT_TERMINAL, None),
    DescriptorKind.AC_MIXER_UNIT: (UAC1_AC_MIXER_UNIT, UAC2_AC_MIXER_UNIT, None),
    DescriptorKind.AC_SELECTOR_UNIT: (UAC1_AC_SELECTOR_UNIT, UAC2_AC_SELECTOR_UNIT, None),
    DescriptorKind.AC_FEATURE_UNIT: (UAC1_AC_FEATURE_UNIT, UAC2_AC_FEATURE_UNIT, None),
    DescriptorKind.AC_EFFECT_UNIT: (None, UAC2_AC_EFFECT_UNIT, None),
    DescriptorKind.AC_PROCESSING_UNIT: (UAC1_AC_PROCESSING_UNIT, UAC2_AC_PROCESSING_UNIT, None),
    DescriptorKind.AC_EXTENSION_UNIT: (UAC1_AC_EXTENSION_UNIT, UAC2_AC_EXTENSION_UNIT, None),
    DescriptorKind.AC_CLOCK_SOURCE: (None, UAC2_AC_CLOCK_SOURCE, None),
    DescriptorKind.AC_CLOCK_SELECTOR: (None, UAC2_AC_CLOCK_SELECTOR, None),
    DescriptorKind.AC_CLOCK_MULTIPLIER: (None, UAC2_AC_CLOCK_MULTIPLIER, None),
    DescriptorKind.AC_SAMPLE_RATE_CONVERTER: (None, UAC2_AC_SAMPLE_RATE_CONVERTER, None),
    DescriptorKind.AS_INTERFACE: (UAC1_AS_INTERFACE, UAC2_AS_INTERFACE, None),
    DescriptorKind.AS_ISO_ENDPOINT: (UAC1_AS_ISO_ENDPOINT, UAC2_AS_ISO_ENDPOINT, None),
}


def build_registry() -> SchemaRegistry:
    """Build the registry from SCHEMA_TABLE."""
    schemas = {}
    for kind, per_generation in SCHEMA_TABLE.items():
        for generation, schema in zip(ProtocolGeneration, per_generation):
            if schema is not None:
                schemas[(kind, generation)] = schema
    return SchemaRegistry(schemas)


REGISTRY = build_registry()
