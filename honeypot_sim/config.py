"""
Run configuration: what to test, from which account, against which node.
"""

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from dotenv import find_dotenv, load_dotenv
from web3 import Web3

from .constants import (
    BPS_DENOMINATOR,
    DEFAULT_FUND_AMOUNT,
    DEFAULT_RPC_URL,
    DEFAULT_SENDER,
    DEFAULT_TRADE_BPS,
    MAINNET_CHAIN_ID,
    UNIV2_FACTORY,
    UNIV2_ROUTER,
    WETH,
    WETH_BALANCE_SLOT,
)
from .errors import ConfigError


class Protocol(Enum):
    UNI_V2 = "univ2"
    UNI_V3 = "univ3"


IMPLEMENTED_PROTOCOLS = (Protocol.UNI_V2,)


@dataclass(frozen=True)
class SimulationConfig:
    token: str
    sender: str = DEFAULT_SENDER
    rpc_url: str = DEFAULT_RPC_URL
    verbose: bool = False
    protocol: Protocol = Protocol.UNI_V2
    base_token: str = WETH
    factory: str = UNIV2_FACTORY
    router: str = UNIV2_ROUTER
    base_balance_slot: int = WETH_BALANCE_SLOT
    fund_amount: int = DEFAULT_FUND_AMOUNT
    trade_bps: int = DEFAULT_TRADE_BPS
    chain_id: int = MAINNET_CHAIN_ID

    @property
    def trade_amount(self) -> int:
        """Base asset spent on the buy leg."""
        return self.fund_amount * self.trade_bps // BPS_DENOMINATOR


def load_config(token: str, sender: Optional[str] = None, rpc_url: Optional[str] = None, verbose: bool = False,
                protocol: Protocol = Protocol.UNI_V2, **overrides) -> SimulationConfig:
    """
    Build a config from explicit arguments, falling back to the environment
    (and a ``.env`` file) and then to the mainnet defaults.
    """
    load_dotenv(find_dotenv(usecwd=True))
    try:
        fund_amount = int(os.environ.get("HP_FUND_AMOUNT", DEFAULT_FUND_AMOUNT))
        trade_bps = int(os.environ.get("HP_TRADE_BPS", DEFAULT_TRADE_BPS))
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting in environment: {e}") from e
    config = SimulationConfig(
        token=token,
        sender=sender or os.environ.get("HP_SENDER") or DEFAULT_SENDER,
        rpc_url=rpc_url or os.environ.get("ETH_RPC_URL") or DEFAULT_RPC_URL,
        verbose=verbose,
        protocol=protocol,
        fund_amount=fund_amount,
        trade_bps=trade_bps,
    )
    if overrides:
        config = replace(config, **overrides)
    return validate_config(config)


def validate_config(config: SimulationConfig) -> SimulationConfig:
    """Check everything that can be checked offline; returns a checksummed copy."""
    if config.protocol not in IMPLEMENTED_PROTOCOLS:
        raise ConfigError(f"Unsupported protocol: {config.protocol.value}")

    addresses = {}
    for name in ("token", "sender", "base_token", "factory", "router"):
        addresses[name] = _checksum(name, getattr(config, name))
    if addresses["token"] == addresses["base_token"]:
        raise ConfigError("Token is the base asset itself, nothing to test")

    url = urlparse(config.rpc_url)
    if url.scheme not in ("http", "https") or not url.netloc:
        raise ConfigError(f"Invalid RPC URL: {config.rpc_url}")

    if config.fund_amount <= 0:
        raise ConfigError("Fund amount must be positive")
    if not 0 < config.trade_bps <= BPS_DENOMINATOR:
        raise ConfigError(f"Trade size must be between 1 and {BPS_DENOMINATOR} bps, got {config.trade_bps}")
    if config.trade_amount == 0:
        raise ConfigError("Trade amount rounds down to zero, raise the fund amount or trade size")
    return replace(config, **addresses)


def check_chain(provider, config: SimulationConfig):
    """Only the configured chain is supported (mainnet by default)."""
    chain_id = provider.get_chain_id()
    if chain_id != config.chain_id:
        raise ConfigError(
            f"Only chain {config.chain_id} is supported, the provided RPC URL is for chain {chain_id}"
        )


def _checksum(name: str, value: str) -> str:
    if not isinstance(value, str) or not value.startswith("0x") or len(value) != 42:
        raise ConfigError(f"Invalid {name} address: {value!r}")
    try:
        return Web3.to_checksum_address(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {name} address: {value!r}") from e
