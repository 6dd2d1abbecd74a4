#!/usr/bin/env python3
"""
Quick smoke run of the honeypot simulator against live mainnet tokens.
Prints one condensed verdict per token.

Tips:
- Needs an RPC endpoint with debug_traceCall; set ETH_RPC_URL (or put it in .env).
- Add known honeypot addresses to HONEYPOT_CANDIDATES below.
- Or create a local file 'honeypot_samples.txt' with one address per line.
- Or set env HONEYPOT_ADDRS as comma-separated addresses.
- Pass --logs to see balances, reserves and quotes for every leg.
"""
import os
import sys

from honeypot_sim import HoneypotSimError, SwapSimulator
from honeypot_sim.config import check_chain, load_config
from honeypot_sim.provider import Web3Provider
from honeypot_sim.report import setup_logging

ADDRESSES = [
    ("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"),
    ("PEPE", "0x6982508145454Ce325dDbE47a25d4ec3d2311933"),
    ("SHIB", "0x95aD61b0a150d79219dCF64E1E6Cc01f0B64C4cE"),
]

# Reported honeypots (status may change over time)
HONEYPOT_CANDIDATES = [
    # ("ReportedHoneypot1", "0x0000000000000000000000000000000000000000"),
]


def _load_from_file():
    items = []
    path = os.path.join(os.getcwd(), 'honeypot_samples.txt')
    if os.path.exists(path):
        with open(path, 'r') as f:
            for line in f:
                addr = line.strip()
                if addr and addr.startswith('0x') and len(addr) == 42:
                    items.append(("HoneypotSample", addr))
    return items


def _load_from_env():
    env = os.environ.get('HONEYPOT_ADDRS', '')
    items = []
    for addr in [x.strip() for x in env.split(',') if x.strip()]:
        if addr.startswith('0x') and len(addr) == 42:
            items.append(("HoneypotEnv", addr))
    return items


def run(verbose=False):
    setup_logging(verbose)
    all_items = ADDRESSES + HONEYPOT_CANDIDATES + _load_from_file() + _load_from_env()
    provider = None
    for name, addr in all_items:
        try:
            config = load_config(addr, verbose=verbose)
            if provider is None:
                provider = Web3Provider(config.rpc_url)
                check_chain(provider, config)
            result = SwapSimulator(config, provider).run()
            print(f"{name:14} {addr} -> {result.verdict} ({result.message})")
        except HoneypotSimError as e:
            print(f"{name:14} {addr} -> ERROR: {e}")


if __name__ == "__main__":
    run(verbose="--logs" in sys.argv[1:])
