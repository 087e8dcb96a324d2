"""
order-protocol: command-line entry point

Computes and verifies order hashes for one exchange deployment.
"""
import sys
import argparse
from pathlib import Path
from typing import List, Optional

from .core.config import ProtocolConfig
from .core.errors import InvalidAddressError, MalformedOrderError
from .core.logger import configure_logging, get_logger
from .hashing.encoder import parse_order
from .hashing.order_hasher import OrderHasher, to_hex

logger = get_logger("OrderProtocolCLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order_protocol",
        description="Order hashing for a peer-to-peer exchange deployment"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("hash", "Print the hash of an order"),
                            ("verify", "Check an order against an expected hash")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--order",
            required=True,
            help="Path to the order JSON file (camelCase fields)"
        )
        sub.add_argument(
            "--exchange",
            help="Exchange address (defaults to ORDER_PROTOCOL_EXCHANGE_ADDRESS)"
        )
        if name == "verify":
            sub.add_argument(
                "--expected",
                required=True,
                help="Expected 0x-prefixed 32-byte order hash"
            )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = ProtocolConfig.from_env()
    configure_logging(config.log_level, config.log_format)

    exchange = args.exchange or config.exchange_address
    if not exchange:
        print("error: no exchange address given (--exchange or ORDER_PROTOCOL_EXCHANGE_ADDRESS)", file=sys.stderr)
        return 2

    try:
        hasher = OrderHasher(exchange)
        order = parse_order(Path(args.order).read_text())
    except (InvalidAddressError, MalformedOrderError, OSError) as e:
        logger.error("order_load_failed", path=args.order, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    order_hash = hasher.hash_order_hex(order)

    if args.command == "hash":
        print(f"Exchange: {hasher.exchange_address}")
        print(f"Domain Separator: {to_hex(hasher.domain_separator_hash)}")
        print(f"Order Hash: {order_hash}")
        return 0

    try:
        matches = hasher.verify(order, args.expected)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    print(f"Order Hash: {order_hash}")
    print(f"Expected:   {args.expected}")
    print("MATCH" if matches else "MISMATCH")
    return 0 if matches else 1


if __name__ == "__main__":
    sys.exit(main())
