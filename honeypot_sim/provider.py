"""
Read-only access to a remote Ethereum node.
"""

from typing import Optional, Union

import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from .errors import ExecutionReverted, NetworkError

BlockId = Union[int, str]

# Failures that mean "the node could not answer", as opposed to a revert.
# web3 6.x raises JSON-RPC error responses (rate limits, unknown block) as plain ValueError.
_TRANSPORT_ERRORS = (requests.exceptions.RequestException, Web3Exception, ConnectionError, TimeoutError, ValueError)


class Web3Provider:
    """Thin wrapper around a Web3 HTTP client that only ever reads."""

    def __init__(self, rpc: Union[str, Web3], timeout: int = 30):
        if isinstance(rpc, Web3):
            self.w3 = rpc
        else:
            self.w3 = Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": timeout}))

    def get_chain_id(self) -> int:
        try:
            return int(self.w3.eth.chain_id)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"Failed to fetch chain id: {e}") from e

    def get_block_number(self) -> int:
        try:
            return int(self.w3.eth.block_number)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"Failed to fetch latest block: {e}") from e

    def call(self, to: str, data: bytes, block: BlockId = "latest", sender: Optional[str] = None,
             state_override: Optional[dict] = None) -> bytes:
        """eth_call; a revert is raised as ExecutionReverted, not NetworkError."""
        tx = {"to": Web3.to_checksum_address(to), "data": HexBytes(data)}
        if sender:
            tx["from"] = Web3.to_checksum_address(sender)
        try:
            return bytes(self.w3.eth.call(tx, block, state_override))
        except ContractLogicError as e:
            raise ExecutionReverted("eth_call", "revert", str(e), _revert_data(e)) from e
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"eth_call to {to} failed: {e}") from e

    def get_storage_at(self, address: str, slot: int, block: BlockId = "latest") -> int:
        address = Web3.to_checksum_address(address)
        try:
            raw = self.w3.eth.get_storage_at(address, slot, block_identifier=block)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"Failed to read storage {address}[{hex(slot)}]: {e}") from e
        return _to_int(raw, f"storage {address}[{hex(slot)}]")

    def get_balance(self, address: str, block: BlockId = "latest") -> int:
        address = Web3.to_checksum_address(address)
        try:
            raw = self.w3.eth.get_balance(address, block_identifier=block)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"Failed to read balance of {address}: {e}") from e
        return _to_int(raw, f"balance of {address}")

    def make_request(self, method: str, params: list) -> dict:
        """Raw JSON-RPC request; RPC-level errors become NetworkError."""
        try:
            response = self.w3.provider.make_request(method, params)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"{method} failed: {e}") from e
        if not isinstance(response, dict):
            raise NetworkError(f"{method} returned a malformed response")
        if response.get("error"):
            raise NetworkError(f"{method} error: {response['error']}")
        if "result" not in response:
            raise NetworkError(f"{method} response has no result")
        return response["result"]


def _revert_data(e: ContractLogicError) -> bytes:
    data = getattr(e, "data", None)
    if isinstance(data, (str, bytes)):
        try:
            return bytes(HexBytes(data))
        except ValueError:
            return b""
    return b""


def _to_int(raw, what: str) -> int:
    if isinstance(raw, int):
        return raw
    try:
        return int.from_bytes(bytes(HexBytes(raw)), "big")
    except (TypeError, ValueError) as e:
        raise NetworkError(f"Malformed response for {what}: {raw!r}") from e
