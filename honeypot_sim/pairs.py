"""Uniswap V2 pair lookup."""

import logging
from dataclasses import dataclass

from web3 import Web3

from . import abi
from .constants import ZERO_ADDRESS
from .errors import PairNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pair:
    """A V2 pool. ``token0`` sorts before ``token1``, as the pool itself orders them."""

    address: str
    token0: str
    token1: str

    def is_token0(self, token: str) -> bool:
        return _key(token) == _key(self.token0)

    def has(self, token: str) -> bool:
        return _key(token) in (_key(self.token0), _key(self.token1))

    def amounts_out(self, token_out: str, amount: int):
        """(amount0Out, amount1Out) for a swap paying ``amount`` of ``token_out``."""
        if not self.has(token_out):
            raise ValueError(f"{token_out} is not in pair {self.address}")
        return (amount, 0) if self.is_token0(token_out) else (0, amount)


def sort_tokens(token_a: str, token_b: str):
    """Order two tokens by their raw address bytes."""
    if _key(token_a) == _key(token_b):
        raise ValueError("Identical addresses")
    a, b = Web3.to_checksum_address(token_a), Web3.to_checksum_address(token_b)
    return (a, b) if _key(a) < _key(b) else (b, a)


def resolve_pair(provider, factory: str, token_a: str, token_b: str, block="latest") -> Pair:
    """Ask the factory for the pool of ``token_a``/``token_b``."""
    data = abi.encode_call("getPair", token_a, token_b)
    pool = abi.decode_result("getPair", provider.call(factory, data, block))
    if _key(pool) == _key(ZERO_ADDRESS):
        raise PairNotFound(f"Pair does not exist on Uniswap V2 for {token_a}/{token_b}")
    token0, token1 = sort_tokens(token_a, token_b)
    logger.debug("pair %s: token0=%s token1=%s", pool, token0, token1)
    return Pair(address=pool, token0=token0, token1=token1)


def _key(address: str) -> bytes:
    return bytes.fromhex(address[2:].lower())
