"""
Contract call execution on top of a StateOverlay.

The simulator never interprets bytecode itself. It hands calls to a
ContractCallExecutor and only looks at the status and return data.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from hexbytes import HexBytes
from web3 import Web3

from .errors import ExecutionReverted, NetworkError
from .overlay import StateOverlay

logger = logging.getLogger(__name__)

# Plenty for a transfer or a pair swap on any sane token
DEFAULT_GAS_LIMIT = 30_000_000


class CallStatus(Enum):
    SUCCESS = "success"
    REVERT = "revert"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionResult:
    status: CallStatus
    return_data: bytes = b""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is CallStatus.SUCCESS

    def raise_for_status(self, call: str) -> bytes:
        """Return data of a successful call, else ExecutionReverted."""
        if not self.ok:
            raise ExecutionReverted(call, self.status.value, self.reason, self.return_data)
        return self.return_data


class ContractCallExecutor(ABC):
    """Runs calls against an overlay. Only ``execute`` may change it."""

    @abstractmethod
    def execute(self, overlay: StateOverlay, sender: str, to: str, data: bytes, value: int = 0) -> ExecutionResult:
        """Run a call and commit its side effects to ``overlay`` if it succeeds."""

    @abstractmethod
    def query(self, overlay: StateOverlay, sender: str, to: str, data: bytes) -> ExecutionResult:
        """Run a call without changing ``overlay``."""


class TraceCallExecutor(ContractCallExecutor):
    """
    Executes on the remote node's own EVM without broadcasting anything.

    The overlay goes along as a state override. ``debug_traceCall`` with the
    call tracer gives the status and output, then the prestate tracer in diff
    mode gives the storage and balance changes, which are written back into
    the overlay. Needs a node with the ``debug`` namespace (geth, reth,
    erigon); ``query`` only needs plain ``eth_call``.
    """

    def __init__(self, provider, gas_limit: int = DEFAULT_GAS_LIMIT):
        self.provider = provider
        self.gas_limit = gas_limit

    def execute(self, overlay: StateOverlay, sender: str, to: str, data: bytes, value: int = 0) -> ExecutionResult:
        tx = self._tx(sender, to, data, value)
        block = hex(overlay.block_number)

        frame = self._trace(tx, block, self._trace_config(overlay, "callTracer", {"onlyTopCall": True}))
        result = _result_from_frame(frame)
        if not result.ok:
            logger.debug("call to %s failed: %s %s", to, result.status.value, result.reason)
            return result

        diff = self._trace(tx, block, self._trace_config(overlay, "prestateTracer", {"diffMode": True}))
        overlay.apply_diff(_accounts(diff, "pre"), _accounts(diff, "post"))
        return result

    def query(self, overlay: StateOverlay, sender: str, to: str, data: bytes) -> ExecutionResult:
        try:
            output = self.provider.call(
                to, data, overlay.block_number, sender=sender, state_override=overlay.state_override() or None
            )
        except ExecutionReverted as e:
            return ExecutionResult(CallStatus.REVERT, e.return_data, e.reason)
        return ExecutionResult(CallStatus.SUCCESS, output)

    def _trace(self, tx: dict, block: str, config: dict) -> dict:
        result = self.provider.make_request("debug_traceCall", [tx, block, config])
        if not isinstance(result, dict):
            raise NetworkError(f"debug_traceCall ({config['tracer']}) returned {type(result).__name__}, not a trace")
        return result

    def _tx(self, sender: str, to: str, data: bytes, value: int) -> dict:
        return {
            "from": Web3.to_checksum_address(sender),
            "to": Web3.to_checksum_address(to),
            "data": "0x" + bytes(data).hex(),
            "value": hex(value),
            "gas": hex(self.gas_limit),
            "gasPrice": "0x0",
        }

    @staticmethod
    def _trace_config(overlay: StateOverlay, tracer: str, tracer_config: dict) -> dict:
        config = {"tracer": tracer, "tracerConfig": tracer_config}
        overrides = overlay.state_override()
        if overrides:
            config["stateOverrides"] = overrides
        return config


def _result_from_frame(frame: dict) -> ExecutionResult:
    try:
        output = bytes(HexBytes(frame.get("output") or "0x"))
    except (TypeError, ValueError) as e:
        raise NetworkError(f"Malformed call trace output: {frame.get('output')!r}") from e
    error = frame.get("error")
    if not error:
        return ExecutionResult(CallStatus.SUCCESS, output)
    reason = frame.get("revertReason") or error
    if "revert" in error:
        return ExecutionResult(CallStatus.REVERT, output, reason)
    return ExecutionResult(CallStatus.ERROR, output, reason)


def _accounts(diff: dict, side: str) -> dict:
    accounts = diff.get(side) or {}
    if not isinstance(accounts, dict):
        raise NetworkError(f"Malformed prestate diff: '{side}' is {type(accounts).__name__}")
    return {Web3.to_checksum_address(k): v for k, v in accounts.items()}
