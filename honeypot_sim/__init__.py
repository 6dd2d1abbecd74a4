"""
Ethereum Honeypot Simulator
Buys and sells a token on Uniswap V2 against a local overlay of mainnet state
to check whether it can actually be sold back.
"""

from .classifier import InconclusiveError, LikelyHoneypot, SimulationResult, Success, classify
from .config import Protocol, SimulationConfig
from .errors import (
    ConfigError,
    DecodeError,
    ExecutionReverted,
    HoneypotSimError,
    InsufficientLiquidity,
    NetworkError,
    PairNotFound,
)
from .swap import SwapSimulator

__version__ = "0.2.0"

__all__ = [
    "ConfigError",
    "DecodeError",
    "ExecutionReverted",
    "HoneypotSimError",
    "InconclusiveError",
    "InsufficientLiquidity",
    "LikelyHoneypot",
    "NetworkError",
    "PairNotFound",
    "Protocol",
    "SimulationConfig",
    "SimulationResult",
    "Success",
    "SwapSimulator",
    "classify",
]
