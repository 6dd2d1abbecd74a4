"""
Round-trip swap simulation: fund the sender with the base asset, buy the
token through its V2 pool, then sell everything back, all inside a
StateOverlay.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from . import abi
from .classifier import SimulationResult, classify
from .config import SimulationConfig
from .erc20 import Token, balance_of, transfer
from .errors import DecodeError, ExecutionReverted, HoneypotSimError
from .executor import ContractCallExecutor, TraceCallExecutor
from .overlay import StateOverlay
from .pairs import Pair, resolve_pair
from .pricing import get_reserves, quote_amount_out

logger = logging.getLogger(__name__)


class Stage(Enum):
    INIT = "init"
    FUNDED = "funded"
    LEG1_SUBMITTED = "leg1_submitted"
    LEG1_SETTLED = "leg1_settled"
    LEG2_SUBMITTED = "leg2_submitted"
    LEG2_SETTLED = "leg2_settled"
    DONE = "done"
    ERROR = "error"


_ORDER = [
    Stage.INIT,
    Stage.FUNDED,
    Stage.LEG1_SUBMITTED,
    Stage.LEG1_SETTLED,
    Stage.LEG2_SUBMITTED,
    Stage.LEG2_SETTLED,
    Stage.DONE,
]


@dataclass
class SwapLeg:
    number: int
    token_in: str
    token_out: str
    amount_in: int = 0
    pool_received: int = 0
    amount_out: int = 0
    success: bool = False
    reason: str = ""
    balances_before: Dict[str, Optional[int]] = field(default_factory=dict)
    balances_after: Dict[str, Optional[int]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "leg": self.number,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": str(self.amount_in),
            "pool_received": str(self.pool_received),
            "amount_out": str(self.amount_out),
            "success": self.success,
            "reason": self.reason,
        }


@dataclass
class SimulationTrace:
    stage: Stage = Stage.INIT
    legs: List[SwapLeg] = field(default_factory=list)
    pair: Optional[Pair] = None
    error: Optional[HoneypotSimError] = None
    failed_stage: Optional[Stage] = None
    failed_leg: Optional[int] = None
    current_leg: Optional[int] = None

    @property
    def finished(self) -> bool:
        return self.stage is Stage.DONE

    def advance(self, stage: Stage):
        """Move one step forward; the run never goes back."""
        if self.stage is Stage.ERROR:
            raise RuntimeError("Simulation already failed")
        if _ORDER.index(stage) != _ORDER.index(self.stage) + 1:
            raise RuntimeError(f"Invalid transition {self.stage.value} -> {stage.value}")
        self.stage = stage

    def fail(self, error: HoneypotSimError):
        self.error = error
        self.failed_stage = self.stage
        self.failed_leg = self.current_leg
        self.stage = Stage.ERROR
        if self.legs and self.current_leg == self.legs[-1].number:
            self.legs[-1].reason = str(error)


class SwapSimulator:
    """
    Runs one buy/sell round trip for ``config.token`` against ``config.base_token``.

    Each call to :meth:`run` starts from a fresh overlay over the same block,
    so repeated runs see identical state.
    """

    def __init__(self, config: SimulationConfig, provider, executor: Optional[ContractCallExecutor] = None,
                 base_info: Optional[Token] = None, token_info: Optional[Token] = None):
        self.config = config
        self.provider = provider
        self.executor = executor or TraceCallExecutor(provider)
        self.base_info = base_info
        self.token_info = token_info
        self.block_number: Optional[int] = None

    def run(self) -> SimulationResult:
        trace = self.simulate()
        result = classify(trace)
        logger.info("verdict: %s", result.verdict)
        return result

    def simulate(self) -> SimulationTrace:
        cfg = self.config
        trace = SimulationTrace()
        try:
            overlay = self.new_overlay()
            trace.pair = resolve_pair(self.provider, cfg.factory, cfg.token, cfg.base_token, overlay.block_number)

            self.fund(overlay)
            trace.advance(Stage.FUNDED)

            trace.current_leg = 1
            self._swap_leg(trace, overlay, cfg.base_token, cfg.token, cfg.trade_amount)

            trace.current_leg = 2
            amount = balance_of(self.executor, overlay, cfg.token, cfg.sender, cfg.sender)
            if amount == 0:
                raise HoneypotSimError("Sender holds none of the token after the buy", is_honeypot=True)
            self._swap_leg(trace, overlay, cfg.token, cfg.base_token, amount)

            trace.current_leg = None
            trace.advance(Stage.DONE)
        except HoneypotSimError as e:
            logger.debug("simulation failed at %s: %s", trace.stage.value, e)
            trace.fail(e)
        return trace

    def new_overlay(self) -> StateOverlay:
        if self.block_number is None:
            self.block_number = self.provider.get_block_number()
            logger.info("forking state at block %s", self.block_number)
        return StateOverlay(self.provider, self.block_number)

    def fund(self, overlay: StateOverlay):
        """
        Give the sender ``fund_amount`` of both native currency and the base
        token, by writing the balance and the token's balance mapping slot.
        """
        cfg = self.config
        overlay.set_balance(cfg.sender, cfg.fund_amount)
        overlay.write(cfg.base_token, abi.mapping_slot(cfg.sender, cfg.base_balance_slot), cfg.fund_amount)

        funded = balance_of(self.executor, overlay, cfg.base_token, cfg.sender, cfg.sender)
        if funded != cfg.fund_amount:
            raise HoneypotSimError(
                f"Funding did not take effect: balance is {funded}, expected {cfg.fund_amount}"
                f" (is slot {cfg.base_balance_slot} the balance mapping?)"
            )
        logger.info("funded %s with %s", cfg.sender, self._fmt(cfg.base_token, cfg.fund_amount))

    def _swap_leg(self, trace: SimulationTrace, overlay: StateOverlay, token_in: str, token_out: str,
                  amount_in: int) -> SwapLeg:
        cfg = self.config
        pair = trace.pair
        number = trace.current_leg
        leg = SwapLeg(number, token_in, token_out, amount_in=amount_in)
        trace.legs.append(leg)
        leg.balances_before = self._balances(overlay)
        self._log_balances(f"leg {number} before", leg.balances_before)

        if amount_in <= 0:
            raise HoneypotSimError(f"Nothing to trade on leg {number}", is_honeypot=False)

        # reserves -> transfer -> quote -> swap, each step sees the previous one
        reserves = get_reserves(self.executor, overlay, cfg.sender, pair, token_in)
        logger.info("leg %s reserves: in=%s out=%s", number, reserves.reserve_in, reserves.reserve_out)
        trace.advance(Stage.LEG1_SUBMITTED if number == 1 else Stage.LEG2_SUBMITTED)

        transfer(self.executor, overlay, token_in, cfg.sender, pair.address, amount_in)
        pool_balance = balance_of(self.executor, overlay, token_in, pair.address, cfg.sender)
        leg.pool_received = pool_balance - reserves.reserve_in
        if leg.pool_received <= 0:
            raise HoneypotSimError(
                f"Pool received nothing from a transfer of {amount_in}", is_honeypot=True
            )
        if leg.pool_received != amount_in:
            logger.info("leg %s: pool received %s of %s sent", number, leg.pool_received, amount_in)

        amount_out = quote_amount_out(
            self.executor, overlay, cfg.sender, cfg.router, leg.pool_received, reserves
        )
        if amount_out == 0:
            raise HoneypotSimError(f"Leg {number} input is too small to buy anything", is_honeypot=False)

        amount0_out, amount1_out = pair.amounts_out(token_out, amount_out)
        data = abi.encode_call("swap", amount0_out, amount1_out, cfg.sender, b"")
        self.executor.execute(overlay, cfg.sender, pair.address, data).raise_for_status("swap")

        leg.amount_out = amount_out
        leg.success = True
        trace.advance(Stage.LEG1_SETTLED if number == 1 else Stage.LEG2_SETTLED)

        leg.balances_after = self._balances(overlay)
        self._log_balances(f"leg {number} after", leg.balances_after)
        logger.info(
            "leg %s: %s -> %s",
            number, self._fmt(token_in, leg.pool_received), self._fmt(token_out, amount_out),
        )
        return leg

    def _balances(self, overlay: StateOverlay) -> Dict[str, Optional[int]]:
        """Sender balances of both assets, for diagnostics only."""
        cfg = self.config
        balances = {}
        for token in (cfg.base_token, cfg.token):
            try:
                balances[token] = balance_of(self.executor, overlay, token, cfg.sender, cfg.sender)
            except (DecodeError, ExecutionReverted) as e:
                logger.warning("could not read balance of %s: %s", token, e)
                balances[token] = None
        return balances

    def _log_balances(self, label: str, balances: Dict[str, Optional[int]]):
        if not self.config.verbose:
            return
        for token, amount in balances.items():
            logger.info("%s: %s", label, "n/a" if amount is None else self._fmt(token, amount))

    def _fmt(self, token: str, amount: int) -> str:
        for info in (self.base_info, self.token_info):
            if info is not None and info.address.lower() == token.lower():
                return info.format(amount)
        return f"{amount} of {token}"
