"""Tests for generation dispatch and descriptor walking."""

import logging

import pytest

from uac_decoder.decoder import BufferUnderrun, DecodeError
from uac_decoder.dispatch import (
    CS_ENDPOINT,
    CS_INTERFACE,
    detect_generation,
    RenderStatus,
    dump_descriptors,
    kind_for_subtype,
    render_class_descriptor,
    render_descriptor,
    subtype_name,
)
from uac_decoder.model import DescriptorKind, InterfaceSubclass, ProtocolGeneration
from uac_decoder.registry import UnsupportedCombination

UAC1 = ProtocolGeneration.UAC1
UAC2 = ProtocolGeneration.UAC2
UAC3 = ProtocolGeneration.UAC3
AC = InterfaceSubclass.AUDIO_CONTROL
AS = InterfaceSubclass.AUDIO_STREAMING

AC_HEADER = bytes.fromhex("09 24 01 00 01 1e 00 01 01")
TRUNCATED_FEATURE_UNIT = bytes.fromhex("05 24 06 05 01")
OUTPUT_TERMINAL = bytes.fromhex("09 24 03 03 01 03 00 01 00")


class TestRenderDescriptor:
    """Rendering a descriptor body by kind."""

    def test_ok(self):
        result = render_descriptor(DescriptorKind.AC_CLOCK_SOURCE, UAC2,
                                   bytes([0x01, 0x03, 0x01, 0x00, 0x00]))
        assert result.ok
        assert result.status is RenderStatus.OK
        assert result.record["bmAttributes"] == 3
        assert "Internal programmable clock" in result.text

    def test_unsupported_uac3(self):
        result = render_descriptor(DescriptorKind.AC_EFFECT_UNIT, UAC3, bytes(8))
        assert result.status is RenderStatus.UNSUPPORTED
        assert not result.supported
        assert result.text == "UAC3 Effect Unit: not yet supported"
        assert isinstance(result.error, UnsupportedCombination)
        assert result.record is None

    def test_unsupported_uac1_clock(self):
        result = render_descriptor(DescriptorKind.AC_CLOCK_SOURCE, UAC1, bytes(5))
        assert result.status is RenderStatus.UNSUPPORTED
        assert result.text == "UAC1 Clock Source: not yet supported"

    def test_unsupported_indent(self):
        result = render_descriptor(DescriptorKind.AC_HEADER, UAC3, bytes(8), indent=1)
        assert result.text == "  UAC3 Header: not yet supported"

    def test_plain_int_generation(self):
        result = render_descriptor(DescriptorKind.AC_SELECTOR_UNIT, 0, bytes([1, 1, 2, 0]))
        assert result.ok

    def test_failed(self, caplog):
        with caplog.at_level(logging.WARNING, logger="uac_decoder.dispatch"):
            result = render_descriptor(DescriptorKind.AC_CLOCK_SOURCE, UAC2,
                                       bytes([0x01, 0x03, 0x01]))

        assert result.status is RenderStatus.FAILED
        assert result.supported
        assert isinstance(result.error, BufferUnderrun)
        assert result.text.startswith("UAC2 Clock Source: decode failed: bAssocTerminal")
        assert "bAssocTerminal" in caplog.text


class TestRenderClassDescriptor:
    """Rendering complete descriptors, header included."""

    def test_header(self):
        result = render_class_descriptor(AC_HEADER, AC, UAC1)
        lines = result.text.split("\n")

        assert result.ok
        assert result.kind is DescriptorKind.AC_HEADER
        assert lines[0] == "AudioControl Interface Descriptor:"
        assert lines[1] == f"  {'bLength':<18}     9"
        assert lines[2] == f"  {'bDescriptorType':<18}    36"
        assert lines[3] == f"  {'bDescriptorSubtype':<18}     1 (HEADER)"
        assert lines[4] == f"  {'bcdADC':<18} 1.00"
        assert lines[5] == f"  {'wTotalLength':<18} 0x001e"
        assert lines[7] == f"  {'baInterfaceNr(0)':<18}     1"

    def test_subtype_numbering_per_generation(self):
        uac1 = render_class_descriptor(bytes.fromhex("07 24 07 01 00 00 00"), AC, UAC1)
        uac2 = render_class_descriptor(bytes.fromhex("07 24 07 01 00 00 00"), AC, UAC2)

        assert uac1.kind is DescriptorKind.AC_PROCESSING_UNIT
        assert uac2.kind is DescriptorKind.AC_EFFECT_UNIT

    def test_uac3_header_unsupported(self):
        result = render_class_descriptor(AC_HEADER, AC, UAC3)
        assert result.status is RenderStatus.UNSUPPORTED
        assert result.text.split("\n")[-1] == "  UAC3 Header: not yet supported"

    def test_unknown_subtype(self):
        result = render_class_descriptor(bytes.fromhex("04 24 04 00"), AC, UAC3)
        lines = result.text.split("\n")

        assert result.status is RenderStatus.UNSUPPORTED
        assert result.kind is None
        assert lines[3].endswith("4 (EXTENDED_TERMINAL)")
        assert lines[-1] == "  UAC3 subtype 0x04: not yet supported"

    def test_streaming_endpoint(self):
        result = render_class_descriptor(bytes.fromhex("07 25 01 01 00 00 00"), AS, UAC1)
        lines = result.text.split("\n")

        assert result.ok
        assert lines[0] == "AudioStreaming Endpoint Descriptor:"
        assert lines[3].endswith("1 (EP_GENERAL)")
        assert "Sampling Frequency" in result.text

    def test_streaming_general(self):
        result = render_class_descriptor(bytes.fromhex("07 24 01 01 01 01 00"), AS, UAC1)
        assert result.kind is DescriptorKind.AS_INTERFACE
        assert "(AS_GENERAL)" in result.text
        assert result.record["wFormatTag"] == 1

    def test_unknown_descriptor_type(self):
        result = render_class_descriptor(bytes.fromhex("03 21 01"), AC, UAC1)
        assert result.status is RenderStatus.UNSUPPORTED
        assert result.text.startswith("Descriptor type 0x21:")

    def test_truncated_header(self):
        result = render_class_descriptor(b"\x09\x24", AC, UAC1)
        assert result.status is RenderStatus.FAILED
        assert isinstance(result.error, BufferUnderrun)

    @pytest.mark.parametrize("data", [b"\x02\x24\x01", b"\x09\x24\x01\x00"])
    def test_invalid_length(self, data):
        result = render_class_descriptor(data, AC, UAC1)
        assert result.status is RenderStatus.FAILED
        assert isinstance(result.error, DecodeError)

    def test_body_limited_to_length(self):
        result = render_class_descriptor(OUTPUT_TERMINAL + b"\xff\xff", AC, UAC1)
        assert result.ok
        assert result.record.trailing == b""


class TestDumpDescriptors:
    """Walking a run of concatenated descriptors."""

    def test_failure_does_not_stop_walk(self):
        blob = AC_HEADER + TRUNCATED_FEATURE_UNIT + OUTPUT_TERMINAL
        results = dump_descriptors(blob, AC, UAC1)

        assert [r.status for r in results] == [
            RenderStatus.OK, RenderStatus.FAILED, RenderStatus.OK]
        assert results[1].kind is DescriptorKind.AC_FEATURE_UNIT
        assert results[1].error.field_name == "bControlSize"
        assert results[2].record["wTerminalType"] == 0x0301

    def test_invalid_length_ends_walk(self):
        results = dump_descriptors(AC_HEADER + b"\x0a\x24\x02", AC, UAC1)

        assert len(results) == 2
        assert results[0].ok
        assert results[1].status is RenderStatus.FAILED
        assert "offset 9" in str(results[1].error)

    def test_zero_length_ends_walk(self):
        results = dump_descriptors(b"\x00" + AC_HEADER, AC, UAC1)
        assert len(results) == 1
        assert results[0].status is RenderStatus.FAILED

    def test_empty(self):
        assert dump_descriptors(b"", AC, UAC1) == []


class TestSubtypes:
    """Subtype to kind mapping."""

    @pytest.mark.parametrize("generation,subtype,kind", [
        (UAC1, 0x06, DescriptorKind.AC_FEATURE_UNIT),
        (UAC2, 0x06, DescriptorKind.AC_FEATURE_UNIT),
        (UAC2, 0x0A, DescriptorKind.AC_CLOCK_SOURCE),
        (UAC3, 0x07, DescriptorKind.AC_FEATURE_UNIT),
        (UAC3, 0x0B, DescriptorKind.AC_CLOCK_SOURCE),
        (UAC1, 0x0A, None),
        (UAC3, 0x04, None),
    ])
    def test_ac_subtypes(self, generation, subtype, kind):
        assert kind_for_subtype(AC, CS_INTERFACE, subtype, generation) is kind

    def test_endpoint_only_in_streaming(self):
        assert kind_for_subtype(AS, CS_ENDPOINT, 0x01, UAC2) is DescriptorKind.AS_ISO_ENDPOINT
        assert kind_for_subtype(AC, CS_ENDPOINT, 0x01, UAC2) is None

    def test_names(self):
        assert subtype_name(AC, CS_INTERFACE, 0x0D, UAC2) == "SAMPLE_RATE_CONVERTER"
        assert subtype_name(AS, CS_INTERFACE, 0x01, UAC2) == "AS_GENERAL"
        assert subtype_name(AS, CS_INTERFACE, 0x02, UAC2) == "FORMAT_TYPE"
        assert subtype_name(AC, CS_INTERFACE, 0x7F, UAC2) == "unknown"


UAC2_HEADER = bytes.fromhex("09 24 01 00 02 01 2e 00 00")
UAC2_CLOCK_SOURCE = bytes.fromhex("08 24 0a 01 03 01 00 00")


class TestGenerationDetection:
    """Generation taken from the AC header's bcdADC."""

    def test_detect_uac2(self):
        assert detect_generation(UAC2_HEADER + UAC2_CLOCK_SOURCE) is UAC2

    def test_detect_uac1(self):
        assert detect_generation(AC_HEADER + OUTPUT_TERMINAL) is UAC1

    def test_header_after_other_descriptors(self):
        assert detect_generation(UAC2_CLOCK_SOURCE + UAC2_HEADER) is UAC2

    @pytest.mark.parametrize("blob", [
        b"",
        OUTPUT_TERMINAL,
        b"\x00" + UAC2_HEADER,
        bytes.fromhex("04 24 01 00"),
    ])
    def test_no_header(self, blob):
        assert detect_generation(blob) is None

    def test_dump_without_generation(self):
        """A UAC2 run decodes with UAC2 layouts when no generation is given."""
        results = dump_descriptors(UAC2_HEADER + UAC2_CLOCK_SOURCE, AC)

        assert [r.status for r in results] == [RenderStatus.OK, RenderStatus.OK]
        assert all(r.generation is UAC2 for r in results)
        assert results[0].record["bCategory"] == 1
        assert results[0].record["wTotalLength"] == 0x2E
        assert results[1].kind is DescriptorKind.AC_CLOCK_SOURCE
        assert "Internal programmable clock" in results[1].text

    def test_explicit_generation_wins(self):
        results = dump_descriptors(UAC2_HEADER + UAC2_CLOCK_SOURCE, AC, UAC1)
        assert results[0].record["wTotalLength"] == 0x2E01
        assert results[1].status is RenderStatus.UNSUPPORTED

    def test_streaming_defaults_to_uac1(self):
        results = dump_descriptors(bytes.fromhex("07 24 01 01 01 01 00"), AS)
        assert results[0].ok
        assert results[0].generation is UAC1


class TestUnknownSubclass:
    """Subclass values other than AudioControl and AudioStreaming."""

    def test_render_class_descriptor(self):
        result = render_class_descriptor(AC_HEADER, 3, UAC1)
        assert result.status is RenderStatus.UNSUPPORTED
        assert isinstance(result.error, ValueError)
        assert result.text == "Interface subclass 3: not an audio subclass"

    def test_dump_does_not_raise(self):
        results = dump_descriptors(AC_HEADER + OUTPUT_TERMINAL, 3, UAC1)
        assert [r.status for r in results] == [
            RenderStatus.UNSUPPORTED, RenderStatus.UNSUPPORTED]
