"""Tests for schema construction and the schema registry."""

import pytest

from uac_decoder.model import (
    CustomDecoder,
    DescriptorKind,
    FieldSchema,
    FieldSpec,
    FieldType,
    MalformedSchema,
    ProtocolGeneration,
    Repetition,
)
from uac_decoder.registry import SchemaRegistry, UnsupportedCombination
from uac_decoder.schemas import REGISTRY, SCHEMA_TABLE
from uac_decoder.tables import FEATURE_UNIT_CONTROLS

NUMBER = FieldType.NUMBER


def spec(name, width=1, kind=NUMBER, **kwargs):
    return FieldSpec(name, kind, byte_width=width, **kwargs)


class TestSchemaValidation:
    """FieldSchema rejects malformed layouts at construction time."""

    def test_valid_schema(self):
        schema = FieldSchema("ok", (
            spec("bNrInPins"),
            spec("baSourceID", repetition=Repetition.by_field("bNrInPins")),
            spec("iName", kind=FieldType.STRING_INDEX),
        ))
        assert len(schema) == 3
        assert schema.index_of("baSourceID") == 1
        assert schema.trailing_size(1) == 1

    def test_forward_reference(self):
        """A length field must come before the array that uses it."""
        with pytest.raises(MalformedSchema, match="not an earlier field"):
            FieldSchema("bad", (
                spec("baSourceID", repetition=Repetition.by_field("bNrInPins")),
                spec("bNrInPins"),
            ))

    def test_self_reference(self):
        with pytest.raises(MalformedSchema):
            FieldSchema("bad", (
                spec("bCount", repetition=Repetition.by_field("bCount")),
            ))

    def test_size_field_reference(self):
        with pytest.raises(MalformedSchema):
            FieldSchema("bad", (
                FieldSpec("bmaControls", NUMBER, size_field="bControlSize"),
            ))

    def test_reference_to_array(self):
        with pytest.raises(MalformedSchema, match="array field"):
            FieldSchema("bad", (
                spec("a", repetition=Repetition.fixed(2)),
                spec("b", repetition=Repetition.by_field("a")),
            ))

    def test_duplicate_name(self):
        with pytest.raises(MalformedSchema, match="duplicate"):
            FieldSchema("bad", (spec("a"), spec("a")))

    @pytest.mark.parametrize("width", [0, 3, 8])
    def test_invalid_width(self, width):
        with pytest.raises(MalformedSchema):
            FieldSchema("bad", (spec("a", width=width),))

    def test_width_and_size_field(self):
        with pytest.raises(MalformedSchema):
            FieldSchema("bad", (
                spec("bControlSize"),
                FieldSpec("a", NUMBER, byte_width=1, size_field="bControlSize"),
            ))

    def test_bits_mode_needs_both_fields(self):
        with pytest.raises(MalformedSchema, match="bits mode"):
            FieldSchema("bad", (
                spec("n"),
                spec("m", repetition=Repetition(length_field1="n", bits=True)),
            ))

    def test_custom_needs_decoder(self):
        with pytest.raises(MalformedSchema, match="custom decoder"):
            FieldSchema("bad", (spec("a", kind=FieldType.CUSTOM),))

    def test_decoder_on_plain_field(self):
        decoder = CustomDecoder("noop", lambda value, indent: "")
        with pytest.raises(MalformedSchema, match="custom decoder"):
            FieldSchema("bad", (spec("a", custom_decoder=decoder),))

    @pytest.mark.parametrize("kind", [
        FieldType.NUMBER_FROM_TABLE,
        FieldType.BITMAP_FROM_TABLE,
        FieldType.CONTROL_BITS_1,
        FieldType.CONTROL_BITS_2,
    ])
    def test_table_kinds_need_table(self, kind):
        with pytest.raises(MalformedSchema, match="label table"):
            FieldSchema("bad", (spec("a", kind=kind),))

    def test_table_kind_with_table(self):
        schema = FieldSchema("ok", (
            spec("a", kind=FieldType.CONTROL_BITS_1, label_table=FEATURE_UNIT_CONTROLS),
        ))
        assert schema[0].label_table is FEATURE_UNIT_CONTROLS

    def test_single_open_ended_array(self):
        with pytest.raises(MalformedSchema, match="open-ended"):
            FieldSchema("bad", (
                spec("a", repetition=Repetition.rest()),
                spec("b", repetition=Repetition.rest()),
            ))

    def test_only_scalars_after_open_ended_array(self):
        with pytest.raises(MalformedSchema, match="fixed-size scalars"):
            FieldSchema("bad", (
                spec("a", repetition=Repetition.rest()),
                spec("b", repetition=Repetition.fixed(1)),
            ))

    def test_conflicting_repetition(self):
        with pytest.raises(MalformedSchema, match="count source"):
            FieldSchema("bad", (
                spec("n"),
                spec("a", repetition=Repetition(count=1, length_field1="n")),
            ))

    def test_schema_is_immutable(self):
        schema = FieldSchema("ok", [spec("a")])
        assert isinstance(schema.fields, tuple)
        with pytest.raises(AttributeError):
            schema.name = "other"


class TestRegistry:
    """Lookup of schemas by kind and generation."""

    def test_every_registered_schema_matches_table(self):
        for kind, per_generation in SCHEMA_TABLE.items():
            for generation, schema in zip(ProtocolGeneration, per_generation):
                assert REGISTRY.lookup(kind, generation) is schema

    def test_uac1_and_uac2_kinds(self):
        assert REGISTRY.lookup(DescriptorKind.AC_FEATURE_UNIT, ProtocolGeneration.UAC1)
        assert REGISTRY.lookup(DescriptorKind.AC_FEATURE_UNIT, ProtocolGeneration.UAC2)
        assert REGISTRY.lookup(DescriptorKind.AC_CLOCK_SOURCE, ProtocolGeneration.UAC1) is None
        assert REGISTRY.lookup(DescriptorKind.AC_EFFECT_UNIT, ProtocolGeneration.UAC1) is None

    def test_uac3_undefined(self):
        for kind in DescriptorKind:
            assert REGISTRY.lookup(kind, ProtocolGeneration.UAC3) is None

    def test_plain_int_generation(self):
        assert REGISTRY.lookup(DescriptorKind.AC_HEADER, 1) is REGISTRY.lookup(
            DescriptorKind.AC_HEADER, ProtocolGeneration.UAC2)

    def test_unknown_generation(self):
        assert REGISTRY.lookup(DescriptorKind.AC_HEADER, 7) is None
        with pytest.raises(UnsupportedCombination, match="UAC generation 7 Header"):
            REGISTRY.require(DescriptorKind.AC_HEADER, 7)

    def test_require_unsupported(self):
        with pytest.raises(UnsupportedCombination) as excinfo:
            REGISTRY.require(DescriptorKind.AC_EFFECT_UNIT, ProtocolGeneration.UAC3)

        assert str(excinfo.value) == "UAC3 Effect Unit: not yet supported"
        assert excinfo.value.kind is DescriptorKind.AC_EFFECT_UNIT
        assert isinstance(excinfo.value, LookupError)

    def test_generations(self):
        assert REGISTRY.generations(DescriptorKind.AC_CLOCK_SOURCE) == [ProtocolGeneration.UAC2]
        assert REGISTRY.generations(DescriptorKind.AS_INTERFACE) == [
            ProtocolGeneration.UAC1, ProtocolGeneration.UAC2]

    def test_support_matrix(self):
        matrix = dict(REGISTRY.support_matrix())
        assert set(matrix) == set(DescriptorKind)
        assert matrix[DescriptorKind.AC_MIXER_UNIT] == {
            ProtocolGeneration.UAC1: True,
            ProtocolGeneration.UAC2: True,
            ProtocolGeneration.UAC3: False,
        }

    def test_registry_is_read_only(self):
        registry = SchemaRegistry({})
        assert len(registry) == 0
        with pytest.raises(TypeError):
            registry._schemas[(DescriptorKind.AC_HEADER, ProtocolGeneration.UAC1)] = None


class TestSchemaLayouts:
    """Spot checks of the transcribed descriptor layouts."""

    def test_feature_unit_sizes(self):
        uac1 = REGISTRY.require(DescriptorKind.AC_FEATURE_UNIT, ProtocolGeneration.UAC1)
        controls = uac1[uac1.index_of("bmaControls")]
        assert controls.size_field == "bControlSize"
        assert controls.kind is FieldType.CONTROL_BITS_1
        assert controls.repetition.remainder

        uac2 = REGISTRY.require(DescriptorKind.AC_FEATURE_UNIT, ProtocolGeneration.UAC2)
        controls = uac2[uac2.index_of("bmaControls")]
        assert controls.byte_width == 4
        assert controls.kind is FieldType.CONTROL_BITS_2

    def test_mixer_control_matrix(self):
        schema = REGISTRY.require(DescriptorKind.AC_MIXER_UNIT, ProtocolGeneration.UAC2)
        rep = schema[schema.index_of("bmMixerControls")].repetition
        assert rep.bits
        assert rep.references == ("bNrInPins", "bNrChannels")

    def test_custom_fields(self):
        schema = REGISTRY.require(DescriptorKind.AC_CLOCK_SOURCE, ProtocolGeneration.UAC2)
        attributes = schema[schema.index_of("bmAttributes")]
        assert attributes.kind is FieldType.CUSTOM
        assert attributes.custom_decoder.name == "uac2_clk_src_bmattr"


class TestModelEnums:
    """Generation and kind helpers."""

    @pytest.mark.parametrize("protocol,generation", [
        (0x00, ProtocolGeneration.UAC1),
        (0x20, ProtocolGeneration.UAC2),
        (0x30, ProtocolGeneration.UAC3),
    ])
    def test_from_interface_protocol(self, protocol, generation):
        assert ProtocolGeneration.from_interface_protocol(protocol) is generation

    def test_unknown_interface_protocol(self):
        with pytest.raises(ValueError):
            ProtocolGeneration.from_interface_protocol(0x10)

    @pytest.mark.parametrize("bcd,generation", [
        (0x0100, ProtocolGeneration.UAC1),
        (0x0200, ProtocolGeneration.UAC2),
        (0x0300, ProtocolGeneration.UAC3),
    ])
    def test_from_bcd_adc(self, bcd, generation):
        assert ProtocolGeneration.from_bcd_adc(bcd) is generation

    @pytest.mark.parametrize("name", [
        "AC_FEATURE_UNIT", "feature_unit", "feature-unit", "Feature Unit",
    ])
    def test_kind_from_name(self, name):
        assert DescriptorKind.from_name(name) is DescriptorKind.AC_FEATURE_UNIT

    def test_kind_from_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown descriptor kind"):
            DescriptorKind.from_name("flux-capacitor")
