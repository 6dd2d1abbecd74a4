"""
Turns the terminal state of a simulation run into a verdict.

Only *how* a run ended matters here. A large loss on the round trip is not
by itself a reason to call a token a honeypot, and failures that say nothing
about the token (no pool, empty pool, node errors, a failing buy) are
reported as inconclusive.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Union

from .errors import (
    ConfigError,
    DecodeError,
    ExecutionReverted,
    HoneypotSimError,
    InsufficientLiquidity,
    NetworkError,
    PairNotFound,
)

if TYPE_CHECKING:
    from .swap import SimulationTrace, SwapLeg

EXIT_SUCCESS = 0
EXIT_INCONCLUSIVE = 1
EXIT_HONEYPOT = 2


@dataclass
class Success:
    amount_out_leg1: int
    amount_out_leg2: int
    legs: List["SwapLeg"] = field(default_factory=list)

    verdict = "NOT A HONEYPOT"
    exit_code = EXIT_SUCCESS
    is_honeypot = False

    @property
    def message(self) -> str:
        return "Token can be bought and sold back"

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict,
            "is_honeypot": self.is_honeypot,
            "amount_out_leg1": str(self.amount_out_leg1),
            "amount_out_leg2": str(self.amount_out_leg2),
            "legs": [leg.to_dict() for leg in self.legs],
        }


@dataclass
class LikelyHoneypot:
    failing_leg: int
    reason: str
    legs: List["SwapLeg"] = field(default_factory=list)

    verdict = "LIKELY HONEYPOT"
    exit_code = EXIT_HONEYPOT
    is_honeypot = True

    @property
    def message(self) -> str:
        return f"Selling failed on leg {self.failing_leg}: {self.reason}"

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict,
            "is_honeypot": self.is_honeypot,
            "failing_leg": self.failing_leg,
            "reason": self.reason,
            "legs": [leg.to_dict() for leg in self.legs],
        }


@dataclass
class InconclusiveError:
    reason: str
    legs: List["SwapLeg"] = field(default_factory=list)

    verdict = "INCONCLUSIVE"
    exit_code = EXIT_INCONCLUSIVE
    is_honeypot = None

    @property
    def message(self) -> str:
        return f"Could not test the token: {self.reason}"

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict,
            "is_honeypot": self.is_honeypot,
            "reason": self.reason,
            "legs": [leg.to_dict() for leg in self.legs],
        }


SimulationResult = Union[Success, LikelyHoneypot, InconclusiveError]

# Failures that are never the token's fault
_ENVIRONMENT_ERRORS = (NetworkError, InsufficientLiquidity, ConfigError)


def classify(trace: "SimulationTrace") -> SimulationResult:
    legs = list(trace.legs)
    error = trace.error

    if error is None:
        if trace.finished and len(legs) == 2 and all(leg.success for leg in legs):
            return Success(legs[0].amount_out, legs[1].amount_out, legs)
        return InconclusiveError(f"simulation stopped at {trace.stage.value}", legs)

    if isinstance(error, PairNotFound):
        return InconclusiveError(f"no pool: {error}", legs)
    if isinstance(error, NetworkError):
        return InconclusiveError(f"network error: {error}", legs)
    if isinstance(error, InsufficientLiquidity):
        return InconclusiveError(f"no liquidity: {error}", legs)
    if isinstance(error, _ENVIRONMENT_ERRORS):
        return InconclusiveError(str(error), legs)

    if trace.failed_leg == 1:
        return InconclusiveError(f"base-asset leg failed: {error}", legs)
    if trace.failed_leg == 2:
        if error.is_honeypot is False:
            return InconclusiveError(str(error), legs)
        if isinstance(error, (ExecutionReverted, DecodeError)) or error.is_honeypot:
            return LikelyHoneypot(2, str(error), legs)
        return InconclusiveError(str(error), legs)
    return InconclusiveError(_describe(error), legs)


def _describe(error: HoneypotSimError) -> str:
    return f"{type(error).__name__}: {error}"
