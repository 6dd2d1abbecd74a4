"""Command line entry point."""

import argparse
import logging
import sys

from rich.markup import escape

from .config import Protocol, check_chain, load_config
from .constants import WETH
from .erc20 import Token, fetch_token_info
from .errors import HoneypotSimError
from .provider import Web3Provider
from .report import console, print_header, print_json, print_report, setup_logging
from .swap import SwapSimulator

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 1
EXIT_UNEXPECTED = 3

WETH_INFO = Token(address=WETH, name="Wrapped Ether", symbol="WETH", decimals=18)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="honeypot-sim",
        description="Check whether an ERC-20 token can be sold back after buying it on Uniswap V2",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  honeypot-sim 0x6982508145454Ce325dDbE47a25d4ec3d2311933 --logs
  ETH_RPC_URL=http://localhost:8545 honeypot-sim <token>

Exit codes: 0 sellable, 2 likely honeypot, 1 inconclusive or bad input, 3 error
        """,
    )
    parser.add_argument("token", help="ERC-20 token address to test")
    parser.add_argument("-l", "--logs", action="store_true", help="Show balances, reserves and quotes for each leg")
    parser.add_argument("-s", "--sender", help="Address the test trades are made from")
    parser.add_argument(
        "-r", "--rpc-url",
        help="RPC endpoint (default: $ETH_RPC_URL, else the Flashbots public RPC). "
             "Simulated swaps need the debug_traceCall method",
    )
    parser.add_argument(
        "-p", "--protocol",
        choices=[p.value for p in Protocol],
        default=Protocol.UNI_V2.value,
        help="Protocol used to test the token (only univ2 is implemented)",
    )
    parser.add_argument("--trade-bps", type=int, help="Share of the funded balance spent on the buy, in bps")
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.logs)

    try:
        overrides = {}
        if args.trade_bps is not None:
            overrides["trade_bps"] = args.trade_bps
        config = load_config(
            args.token,
            sender=args.sender,
            rpc_url=args.rpc_url,
            verbose=args.logs,
            protocol=Protocol(args.protocol),
            **overrides,
        )
        provider = Web3Provider(config.rpc_url)
        check_chain(provider, config)
        token = fetch_token_info(provider, config.token)
        base = WETH_INFO if config.base_token == WETH else fetch_token_info(provider, config.base_token)
    except HoneypotSimError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return EXIT_CONFIG_ERROR

    try:
        if not args.json:
            print_header(token, base, config.sender)
        result = SwapSimulator(config, provider, base_info=base, token_info=token).run()
    except Exception as e:
        logger.exception("unexpected failure")
        console.print(f"\n[red]Error:[/red] {escape(str(e))}\n")
        return EXIT_UNEXPECTED

    if args.json:
        print_json(result, token)
    else:
        print_report(result, token, base)
    return result.exit_code


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
