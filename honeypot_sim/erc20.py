"""
ERC-20 helpers: token metadata from the node, balances and transfers through
the executor.
"""

import logging
from dataclasses import dataclass

from web3 import Web3

from . import abi
from .errors import ConfigError, DecodeError, ExecutionReverted
from .executor import ContractCallExecutor
from .overlay import StateOverlay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    address: str
    name: str
    symbol: str
    decimals: int

    def format(self, amount: int) -> str:
        """Human readable amount, for logs only."""
        return f"{amount / (10 ** self.decimals):,.6f} {self.symbol}"


def fetch_token_info(provider, address: str, block="latest") -> Token:
    """Read name, symbol and decimals; anything that does not answer is not an ERC-20."""
    address = Web3.to_checksum_address(address)
    try:
        name = abi.decode_result("name", provider.call(address, abi.encode_call("name"), block))
        symbol = abi.decode_result("symbol", provider.call(address, abi.encode_call("symbol"), block))
        decimals = abi.decode_result("decimals", provider.call(address, abi.encode_call("decimals"), block))
    except (DecodeError, ExecutionReverted) as e:
        raise ConfigError(f"Token {address} isn't an ERC-20 token: {e}") from e
    return Token(address=address, name=name, symbol=symbol, decimals=int(decimals))


def balance_of(executor: ContractCallExecutor, overlay: StateOverlay, token: str, account: str, sender: str) -> int:
    data = abi.encode_call("balanceOf", account)
    result = executor.query(overlay, sender, token, data)
    return abi.decode_result("balanceOf", result.raise_for_status("balanceOf"))


def transfer(executor: ContractCallExecutor, overlay: StateOverlay, token: str, sender: str, to: str, amount: int):
    """Transfer ``amount`` of ``token`` from ``sender`` to ``to`` inside the overlay."""
    data = abi.encode_call("transfer", to, amount)
    result = executor.execute(overlay, sender, token, data)
    payload = result.raise_for_status("transfer")
    if not abi.decode_transfer_result(payload):
        raise ExecutionReverted("transfer", "returned false")
    logger.debug("transferred %s of %s from %s to %s", amount, token, sender, to)
