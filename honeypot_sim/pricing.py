"""
Reserves and quotes for a V2 pool. Quotes come from the router's own
``getAmountOut`` so the amount asked for in ``swap`` is rounded exactly the
way the pool checks it.
"""

import logging
from typing import NamedTuple

from . import abi
from .errors import InsufficientLiquidity
from .executor import ContractCallExecutor
from .overlay import StateOverlay
from .pairs import Pair

logger = logging.getLogger(__name__)


class Reserves(NamedTuple):
    reserve_in: int
    reserve_out: int


def get_reserves(executor: ContractCallExecutor, overlay: StateOverlay, sender: str, pair: Pair,
                 token_in: str) -> Reserves:
    """Current reserves seen from ``token_in``'s side of the pool."""
    result = executor.query(overlay, sender, pair.address, abi.encode_call("getReserves"))
    reserve0, reserve1, _ = abi.decode_result("getReserves", result.raise_for_status("getReserves"))
    if not pair.has(token_in):
        raise ValueError(f"{token_in} is not in pair {pair.address}")
    if pair.is_token0(token_in):
        return Reserves(reserve0, reserve1)
    return Reserves(reserve1, reserve0)


def quote_amount_out(executor: ContractCallExecutor, overlay: StateOverlay, sender: str, router: str,
                     amount_in: int, reserves: Reserves) -> int:
    if reserves.reserve_in == 0 or reserves.reserve_out == 0:
        raise InsufficientLiquidity(f"Pool has no liquidity (reserves {reserves.reserve_in}/{reserves.reserve_out})")
    data = abi.encode_call("getAmountOut", amount_in, reserves.reserve_in, reserves.reserve_out)
    result = executor.query(overlay, sender, router, data)
    amount_out = abi.decode_result("getAmountOut", result.raise_for_status("getAmountOut"))
    logger.debug("quote: %s in against %s/%s -> %s out", amount_in, reserves.reserve_in, reserves.reserve_out, amount_out)
    return amount_out
