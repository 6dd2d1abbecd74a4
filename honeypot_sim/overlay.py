"""
Copy-on-write overlay of account balances and storage on top of a remote
chain snapshot. Every write stays local; the remote node is only read.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from web3 import Web3

from .errors import NetworkError

logger = logging.getLogger(__name__)


@dataclass
class AccountOverlay:
    """Local overrides for one account, created the first time it is touched."""

    address: str
    balance: Optional[int] = None
    storage: Dict[int, int] = field(default_factory=dict)


class StateOverlay:
    """
    Mutable view of chain state pinned to ``block_number``.

    Reads fall through to the provider once and are cached. Writes always win
    over both the cache and the remote value.
    """

    def __init__(self, provider, block_number: int):
        self.provider = provider
        self.block_number = block_number
        self.accounts: Dict[str, AccountOverlay] = {}
        self._storage_cache: Dict[Tuple[str, int], int] = {}
        self._balance_cache: Dict[str, int] = {}
        self.remote_reads = 0

    def account(self, address: str) -> AccountOverlay:
        address = Web3.to_checksum_address(address)
        entry = self.accounts.get(address)
        if entry is None:
            entry = AccountOverlay(address)
            self.accounts[address] = entry
        return entry

    def read(self, address: str, slot: int) -> int:
        address = Web3.to_checksum_address(address)
        entry = self.accounts.get(address)
        if entry is not None and slot in entry.storage:
            return entry.storage[slot]
        key = (address, slot)
        if key not in self._storage_cache:
            self._storage_cache[key] = self._remote(
                self.provider.get_storage_at, address, slot, what=f"storage {address}[{hex(slot)}]"
            )
        return self._storage_cache[key]

    def write(self, address: str, slot: int, value: int):
        _check_word(value)
        self.account(address).storage[slot] = value

    def get_balance(self, address: str) -> int:
        address = Web3.to_checksum_address(address)
        entry = self.accounts.get(address)
        if entry is not None and entry.balance is not None:
            return entry.balance
        if address not in self._balance_cache:
            self._balance_cache[address] = self._remote(
                self.provider.get_balance, address, what=f"balance of {address}"
            )
        return self._balance_cache[address]

    def set_balance(self, address: str, value: int):
        _check_word(value)
        self.account(address).balance = value

    def state_override(self) -> Dict[str, dict]:
        """Overrides in the JSON-RPC ``eth_call`` state-override format."""
        overrides = {}
        for address, entry in self.accounts.items():
            item = {}
            if entry.balance is not None:
                item["balance"] = hex(entry.balance)
            if entry.storage:
                item["stateDiff"] = {_word_hex(slot): _word_hex(value) for slot, value in entry.storage.items()}
            if item:
                overrides[address] = item
        return overrides

    def apply_diff(self, pre: Dict[str, dict], post: Dict[str, dict]):
        """
        Fold a prestate-tracer diff (``diffMode``) into the overlay.

        Storage slots listed in ``pre`` but absent from ``post`` were cleared
        to zero; an account in ``pre`` but not in ``post`` was destroyed.
        """
        for address, before in pre.items():
            after = post.get(address)
            if after is None:
                self.set_balance(address, 0)
                for slot in (before.get("storage") or {}):
                    self.write(address, int(slot, 16), 0)
                continue
            cleared = set(before.get("storage") or {}) - set(after.get("storage") or {})
            for slot in cleared:
                self.write(address, int(slot, 16), 0)
        for address, after in post.items():
            if "balance" in after:
                self.set_balance(address, _parse_quantity(after["balance"]))
            for slot, value in (after.get("storage") or {}).items():
                self.write(address, int(slot, 16), _parse_quantity(value))

    def _remote(self, fn, *args, what: str) -> int:
        self.remote_reads += 1
        try:
            value = fn(*args, self.block_number)
        except NetworkError:
            raise
        except (TypeError, ValueError) as e:
            raise NetworkError(f"Malformed response for {what}: {e}") from e
        if not isinstance(value, int) or value < 0:
            raise NetworkError(f"Malformed response for {what}: {value!r}")
        logger.debug("hydrated %s = %s", what, value)
        return value


def _check_word(value: int):
    if value < 0 or value >= 2**256:
        raise ValueError(f"{value} does not fit in a 256-bit word")


def _word_hex(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def _parse_quantity(value) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)
