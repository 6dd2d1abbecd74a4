"""Terminal and JSON rendering of a simulation verdict."""

import json
import logging
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .classifier import InconclusiveError, LikelyHoneypot, SimulationResult, Success
from .erc20 import Token

console = Console()

VERDICT_STYLES = {
    Success: "green3",
    LikelyHoneypot: "red",
    InconclusiveError: "yellow3",
}


def setup_logging(verbose: bool = False):
    """Route the package loggers through rich; ``verbose`` shows per-leg details."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("honeypot_sim").setLevel(logging.DEBUG if verbose else logging.WARNING)
    # web3 and urllib3 are chatty at DEBUG
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_header(token: Token, base: Token, sender: str):
    console.print(Panel.fit(Text("Ethereum Honeypot Simulator", justify="center", style="bold white"),
                            border_style="cyan", padding=(0, 1)))
    console.print(Text(f"Token: {token.name} ({token.symbol}) {token.address}", style="bold cyan"))
    console.print(Text(f"Round trip: {base.symbol} -> {token.symbol} -> {base.symbol} from {sender}",
                       style="cyan"))


def print_report(result: SimulationResult, token: Optional[Token] = None, base: Optional[Token] = None):
    """Legs table followed by the verdict panel."""
    tokens = {t.address.lower(): t for t in (token, base) if t is not None}

    if result.legs:
        table = Table(title="Simulated swaps", box=box.SIMPLE_HEAVY, show_lines=False)
        table.add_column("Leg", justify="center")
        table.add_column("Sent", justify="right")
        table.add_column("Pool received", justify="right")
        table.add_column("Received", justify="right")
        table.add_column("Status")
        for leg in result.legs:
            status = Text("ok", style="green3") if leg.success else Text(leg.reason or "failed", style="red")
            table.add_row(
                str(leg.number),
                _amount(tokens, leg.token_in, leg.amount_in),
                _amount(tokens, leg.token_in, leg.pool_received),
                _amount(tokens, leg.token_out, leg.amount_out) if leg.success else "-",
                status,
            )
        console.print(table)

    style = VERDICT_STYLES.get(type(result), "white")
    console.print(Panel.fit(Text(f"{result.verdict}\n{result.message}", style=f"bold {style}"),
                            border_style=style))
    if isinstance(result, Success) and result.legs:
        spent, back = result.legs[0].amount_in, result.amount_out_leg2
        if spent:
            console.print(Text(f"Round-trip loss: {(spent - back) / spent * 100:.2f}%", style="bright_black"))
    console.print(Text("Note: simulated against a fork of current state, not financial advice.",
                       style="bright_black"))


def print_json(result: SimulationResult, token: Optional[Token] = None):
    payload = result.to_dict()
    if token is not None:
        payload["token"] = {
            "address": token.address,
            "name": token.name,
            "symbol": token.symbol,
            "decimals": token.decimals,
        }
    print(json.dumps(payload, indent=2))


def _amount(tokens, address: str, amount: int) -> str:
    info = tokens.get(address.lower())
    return info.format(amount) if info else str(amount)
