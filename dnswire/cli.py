"""
dnswire CLI entry point.
"""

import argparse
import asyncio
import binascii
import sys
from ipaddress import IPv4Address
from pathlib import Path

from . import __version__
from .config import load_config, generate_example_config
from .errors import MessageError
from .protocol import Message, decode
from .server import setup_logging, run_server


def read_wire(source: str) -> bytes:
    """Raw bytes from a file path, or from a hex string (whitespace allowed)."""
    p = Path(source)
    if p.is_file():
        return p.read_bytes()
    return binascii.unhexlify("".join(source.split()))


def print_message(message: Message):
    h = message.header
    flags = " ".join(f for f in ("qr", "aa", "tc", "rd", "ra", "ad", "cd") if getattr(h, f))
    print(message)
    print(f"  id={h.id} opcode={h.opcode.mnemonic} rcode={h.rcode.mnemonic} flags=[{flags}]")
    for q in message.questions:
        print(f"  question   {q.q_name} {q.q_type.mnemonic} {q.q_class.mnemonic}")
    sections = (
        ("answer", message.answers),
        ("authority", message.name_servers),
        ("additional", message.additional_records),
    )
    for label, records in sections:
        for rr in records:
            print(f"  {label:<10} {rr.name or '.'} {rr.ttl} {rr.rclass.mnemonic} {rr.data}")


def _fail(text: str):
    print(text, file=sys.stderr)
    sys.exit(1)


def cmd_init(args):
    generate_example_config(args.output)


def cmd_check(args):
    try:
        config = load_config(args.config)
    except (OSError, ValueError, TypeError) as e:
        _fail(f"✗ Config error: {e}")
    server = config.server
    print("✓ Config is valid.")
    print(f"  Listen  : {server.host}:{server.port}")
    print(f"  Upstream: {', '.join(server.upstream)} (port {server.upstream_port})")
    print(f"  Sinkhole: {server.sinkhole or 'off'}")


def cmd_decode(args):
    try:
        message = decode(read_wire(args.source))
    except MessageError as e:
        _fail(f"✗ {type(e).__name__}: {e}")
    except ValueError as e:
        # bad hex
        _fail(f"✗ Input error: {e}")
    print_message(message)


def cmd_start(args):
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        _fail(f"Error: {e}")
    except (OSError, ValueError, TypeError) as e:
        _fail(f"Config error: {e}")

    server = config.server
    if args.host:
        server.host = args.host
    if args.port is not None:
        server.port = args.port
    if args.upstream:
        server.upstream = args.upstream
    if args.sinkhole:
        server.sinkhole = str(args.sinkhole)
    if args.log_level:
        server.log_level = args.log_level

    setup_logging(server.log_level)
    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dnswire",
        description="dnswire — DNS message codec and UDP relay",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"dnswire {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Run the UDP relay")
    start.add_argument("--config", "-c", metavar="FILE", help="JSON config file")
    start.add_argument("--host", help="Listen address (default from config or 127.0.0.1)")
    start.add_argument("--port", "-p", type=int, help="Listen port (default from config or 8053)")
    start.add_argument(
        "--upstream", "-u",
        action="append",
        metavar="ADDR",
        help="Upstream server; repeat for fallbacks (replaces the configured list)",
    )
    start.add_argument(
        "--sinkhole",
        type=IPv4Address,
        metavar="IPV4",
        help="Rewrite every A answer to this address",
    )
    start.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    start.set_defaults(func=cmd_start)

    init = subparsers.add_parser("init", help="Write an example config file")
    init.add_argument(
        "output",
        nargs="?",
        default="dnswire.json",
        help="Output path (default: dnswire.json)",
    )
    init.set_defaults(func=cmd_init)

    check = subparsers.add_parser("check", help="Validate a config file")
    check.add_argument("config", metavar="FILE", help="Config file to validate")
    check.set_defaults(func=cmd_check)

    dec = subparsers.add_parser("decode", help="Decode and print a raw DNS message")
    dec.add_argument("source", help="Hex string, or a file holding the raw message")
    dec.set_defaults(func=cmd_decode)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
