"""
Command-line interface for the USB Audio Class descriptor decoder.

Usage:
    uac-decoder [options] [file]
    echo "09 24 01 00 01 1e 00 01 01" | uac-decoder -s control -u 1
    uac-decoder -k clock-source -u 2 -x "01 03 01 00 00"
    uac-decoder -p 0x20 descriptors.txt
"""

import argparse
import json
import logging
import re
import sys
from typing import Optional

from .dispatch import RenderStatus, detect_generation, dump_descriptors, render_descriptor
from .model import DescriptorKind, InterfaceSubclass, ProtocolGeneration
from .render import RenderOptions
from .schemas import REGISTRY

logger = logging.getLogger(__name__)

SUBCLASSES = {
    "control": InterfaceSubclass.AUDIO_CONTROL,
    "streaming": InterfaceSubclass.AUDIO_STREAMING,
}


class InputError(Exception):
    """Exception raised when the hex input cannot be parsed."""
    pass


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="uac-decoder",
        description="Decode USB Audio Class descriptors from hex bytes.",
        epilog="Example: uac-decoder -k feature-unit -u 1 -x '05 01 02 03 00 00'",
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="Input file containing hex bytes (default: stdin)",
    )

    parser.add_argument(
        "-x", "--hex",
        help="Hex bytes given on the command line instead of a file",
    )

    parser.add_argument(
        "-u", "--uac",
        type=int,
        choices=[1, 2, 3],
        help="Audio Class generation (default: from the AC header's bcdADC, else 1)",
    )

    parser.add_argument(
        "-p", "--protocol",
        type=lambda text: int(text, 0),
        help="Interface bInterfaceProtocol (0x00, 0x20 or 0x30) selecting the generation",
    )

    parser.add_argument(
        "-k", "--kind",
        help="Decode a bare descriptor body of this kind (e.g. feature-unit, as-interface)",
    )

    parser.add_argument(
        "-s", "--subclass",
        choices=sorted(SUBCLASSES),
        default="control",
        help="Interface subclass for full descriptors (default: control)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List descriptor kinds and the generations that support them",
    )

    parser.add_argument(
        "--no-details",
        action="store_true",
        help="Do not list bitmap and control labels",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only report errors",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser


def configure_logging(quiet: bool, verbose: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, stream=sys.stderr,
                        format="%(levelname)s %(name)s: %(message)s")


def parse_hex(text: str) -> bytes:
    """
    Parse hex bytes such as "09 24 01", "0x09,0x24" or "092401".

    Raises:
        InputError: If the text contains anything but hex byte values
    """
    tokens = [t for t in re.split(r"[\s,;:]+", text.strip()) if t]
    data = bytearray()
    for token in tokens:
        if token.lower().startswith("0x"):
            token = token[2:]
        if not token or len(token) % 2 or not re.fullmatch(r"[0-9a-fA-F]+", token):
            raise InputError(f"Invalid hex byte(s): {token!r}")
        data.extend(bytes.fromhex(token))
    return bytes(data)


def read_input(file_path: Optional[str]) -> str:
    """Read input from file or stdin."""
    if file_path:
        try:
            with open(file_path, "r") as f:
                return f.read()
        except FileNotFoundError:
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            sys.exit(1)
        except IOError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        # Check if stdin has data
        if sys.stdin.isatty():
            print("Error: No input provided. Pipe hex bytes or specify a file.",
                  file=sys.stderr)
            print("Usage: echo '09 24 01 ...' | uac-decoder", file=sys.stderr)
            print("       uac-decoder input.txt", file=sys.stderr)
            sys.exit(1)
        return sys.stdin.read()


def render_support_matrix() -> str:
    """Render the registry's kind x generation support table."""
    generations = list(ProtocolGeneration)
    width = max(len(kind.display_name) for kind in DescriptorKind)
    lines = [f"{'Descriptor':<{width}}  " + "  ".join(g.label for g in generations)]
    lines.append("-" * len(lines[0]))
    for kind, support in REGISTRY.support_matrix():
        marks = "  ".join(("yes" if support[g] else "-").center(len(g.label))
                          for g in generations)
        lines.append(f"{kind.display_name:<{width}}  {marks}")
    return "\n".join(lines)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"uac-decoder {__version__}")
        return 0

    configure_logging(args.quiet, args.verbose)

    if args.list:
        print(render_support_matrix())
        return 0

    kind = None
    if args.kind:
        try:
            kind = DescriptorKind.from_name(args.kind)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    text = args.hex if args.hex is not None else read_input(args.file)

    try:
        data = parse_hex(text)
    except InputError as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 1

    if not data:
        print("Error: Empty input", file=sys.stderr)
        return 1

    generation = None
    if args.uac is not None:
        generation = ProtocolGeneration(args.uac - 1)
    elif args.protocol is not None:
        try:
            generation = ProtocolGeneration.from_interface_protocol(args.protocol)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    subclass = SUBCLASSES[args.subclass]
    if generation is None and kind is None and subclass is InterfaceSubclass.AUDIO_CONTROL:
        generation = detect_generation(data)
    if generation is None:
        generation = ProtocolGeneration.UAC1
    logger.debug("Decoding as %s", generation.label)

    options = RenderOptions(show_details=not args.no_details)

    if kind is not None:
        results = [render_descriptor(kind, generation, data, options=options)]
    else:
        results = dump_descriptors(data, subclass, generation, options=options)

    if args.format == "json":
        output = [
            {
                "kind": r.kind.name if r.kind else None,
                "generation": generation.label,
                "status": r.status.value,
                "fields": r.record.as_dict() if r.record else None,
                "error": str(r.error) if r.error else None,
            }
            for r in results
        ]
        print(json.dumps(output, indent=2))
    else:
        print("\n".join(r.text for r in results))

    failed = [r for r in results if r.status is RenderStatus.FAILED]
    if failed:
        logger.error("%d descriptor(s) failed to decode", len(failed))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
