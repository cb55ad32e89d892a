"""
secretctl - Secret Messages Control CLI

Command-line helpers for preparing and checking messages offline:
- Encode a payload with flags into a packed message
- Decode a packed message into payload and flags
- Check flag constraints
- Check a batch message against the validity rules

Exit codes: 0 valid/success, 1 invalid, 2 usage or overflow error.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from secretmessages.batch.message import MessageValidator, SecretMessage
from secretmessages.config import LedgerConfig
from secretmessages.errors import ConfigError
from secretmessages.ledger.flags import FlagSet, decode, encode

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def _int(value: str) -> int:
    """Parse decimal, hex (0x), or binary (0b) integers."""
    return int(value, 0)


def _flags_dict(flags: FlagSet) -> dict:
    return {f"flag{i}": flag for i, flag in enumerate(flags.as_tuple(), start=1)}


class SecretCtl:
    """Main controller class for secretctl operations."""

    def __init__(self, config: LedgerConfig):
        self.config = config
        self.validator = MessageValidator(config)

    def encode(self, payload: int, flags: int) -> int:
        packed = encode(payload, flags)
        print(packed)
        return EXIT_OK

    def decode(self, packed: int) -> int:
        payload, flags = decode(packed)
        print(json.dumps({
            "payload": payload,
            "flags": _flags_dict(flags),
            "flags_valid": flags.is_valid(),
        }, sort_keys=True))
        return EXIT_OK

    def check_flags(self, bits: int) -> int:
        flags = FlagSet.from_bits(bits)
        valid = flags.is_valid()
        print("[PASS] flags valid" if valid else "[FAIL] flags invalid")
        return EXIT_OK if valid else EXIT_INVALID

    def check_message(self, message: SecretMessage, prev_message_number: int) -> int:
        reason = self.validator.explain(message, prev_message_number)
        print(json.dumps({
            "message_number": message.message_number,
            "valid": reason != "invalid",
            "reason": reason,
        }, sort_keys=True))
        return EXIT_INVALID if reason == "invalid" else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretctl",
        description="Secret messages ledger helpers",
    )
    parser.add_argument("--config", help="YAML config file (defaults to environment)")

    sub = parser.add_subparsers(dest="command", required=True)

    p_encode = sub.add_parser("encode", help="Pack a payload and flags")
    p_encode.add_argument("payload", type=_int)
    p_encode.add_argument("--flags", type=_int, default=0, help="6-bit flag value")

    p_decode = sub.add_parser("decode", help="Unpack a packed message")
    p_decode.add_argument("packed", type=_int)

    p_flags = sub.add_parser("check-flags", help="Check flag constraints")
    p_flags.add_argument("bits", type=_int)

    p_msg = sub.add_parser("check-message", help="Check batch message validity")
    p_msg.add_argument("--number", type=_int, required=True)
    p_msg.add_argument("--prev", type=_int, default=0)
    p_msg.add_argument("--agent-id", type=_int, required=True)
    p_msg.add_argument("--x", type=_int, required=True)
    p_msg.add_argument("--y", type=_int, required=True)
    p_msg.add_argument("--checksum", type=_int, required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = LedgerConfig.from_yaml(args.config) if args.config else LedgerConfig.from_env()
    except (ConfigError, FileNotFoundError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=config.numeric_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctl = SecretCtl(config)

    try:
        if args.command == "encode":
            return ctl.encode(args.payload, args.flags)
        if args.command == "decode":
            return ctl.decode(args.packed)
        if args.command == "check-flags":
            return ctl.check_flags(args.bits)
        message = SecretMessage(
            message_number=args.number,
            agent_id=args.agent_id,
            agent_x_location=args.x,
            agent_y_location=args.y,
            check_sum=args.checksum,
        )
        return ctl.check_message(message, args.prev)
    except ValueError as exc:
        # PayloadOverflow is a ValueError
        print(f"[ERROR] {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
