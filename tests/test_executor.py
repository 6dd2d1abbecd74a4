from types import SimpleNamespace

import pytest
import requests
from web3 import Web3
from web3.exceptions import ContractLogicError

from fakes import FakeProvider, World, _encode_words
from honeypot_sim import abi
from honeypot_sim.classifier import InconclusiveError
from honeypot_sim.config import SimulationConfig, validate_config
from honeypot_sim.constants import WETH
from honeypot_sim.errors import ExecutionReverted, NetworkError
from honeypot_sim.executor import CallStatus, ExecutionResult, TraceCallExecutor
from honeypot_sim.overlay import StateOverlay
from honeypot_sim.provider import Web3Provider
from honeypot_sim.swap import SwapSimulator

SENDER = Web3.to_checksum_address("0xe4a6ad6e1b86ab8f2d2f571717592de46bfaf614")
PAIR = "0x2222222222222222222222222222222222222222"


class TracingNode(FakeProvider):
    """Answers debug_traceCall from canned frames and records the requests."""

    def __init__(self, frame, diff=None, revert=None):
        super().__init__()
        self.frame = frame
        self.diff = diff or {"pre": {}, "post": {}}
        self.revert = revert
        self.requests = []

    def make_request(self, method, params):
        self.requests.append((method, params))
        tracer = params[2]["tracer"]
        return self.frame if tracer == "callTracer" else self.diff

    def call(self, to, data, block="latest", sender=None, state_override=None):
        self.requests.append(("eth_call", [to, data, block, sender, state_override]))
        if self.revert:
            raise ExecutionReverted("eth_call", "revert", self.revert)
        return (7).to_bytes(32, "big")


def _overlay(node):
    return StateOverlay(node, node.get_block_number())


def test_execute_applies_state_diff_on_success():
    slot = hex(abi.mapping_slot(SENDER, 3))
    diff = {
        "pre": {WETH.lower(): {"storage": {slot: "0x10"}}},
        "post": {WETH.lower(): {"storage": {slot: "0x04"}}},
    }
    node = TracingNode({"output": "0x" + "00" * 31 + "01"}, diff)
    overlay = _overlay(node)

    result = TraceCallExecutor(node).execute(overlay, SENDER, WETH, abi.encode_call("transfer", PAIR, 12))

    assert result.ok
    assert abi.decode_transfer_result(result.return_data) is True
    assert overlay.read(WETH, int(slot, 16)) == 4
    assert [params[2]["tracer"] for _, params in node.requests] == ["callTracer", "prestateTracer"]


def test_execute_sends_overlay_as_state_override_at_pinned_block():
    node = TracingNode({"output": "0x"})
    overlay = _overlay(node)
    overlay.set_balance(SENDER, 10**18)

    TraceCallExecutor(node).execute(overlay, SENDER, WETH, b"\x01\x02\x03\x04")

    method, (tx, block, config) = node.requests[0]
    assert method == "debug_traceCall"
    assert block == hex(node.block_number)
    assert tx["from"] == SENDER
    assert tx["gasPrice"] == "0x0"
    assert config["stateOverrides"] == {SENDER: {"balance": hex(10**18)}}


def test_reverted_execute_leaves_overlay_untouched():
    node = TracingNode({"output": "0x", "error": "execution reverted", "revertReason": "TRANSFER_BLOCKED"})
    overlay = _overlay(node)

    result = TraceCallExecutor(node).execute(overlay, SENDER, WETH, abi.encode_call("transfer", PAIR, 1))

    assert result.status is CallStatus.REVERT
    assert result.reason == "TRANSFER_BLOCKED"
    assert overlay.accounts == {}
    assert len(node.requests) == 1


def test_out_of_gas_is_an_error_status():
    node = TracingNode({"error": "out of gas"})
    result = TraceCallExecutor(node).execute(_overlay(node), SENDER, WETH, b"\x00" * 4)
    assert result.status is CallStatus.ERROR


def test_query_uses_eth_call_and_maps_reverts():
    node = TracingNode({})
    executor = TraceCallExecutor(node)
    overlay = _overlay(node)

    assert executor.query(overlay, SENDER, WETH, abi.encode_call("balanceOf", SENDER)).return_data[-1] == 7

    node.revert = "nope"
    result = executor.query(overlay, SENDER, WETH, abi.encode_call("balanceOf", SENDER))
    assert result.status is CallStatus.REVERT
    assert overlay.accounts == {}


def test_raise_for_status():
    assert ExecutionResult(CallStatus.SUCCESS, b"\x01").raise_for_status("x") == b"\x01"
    with pytest.raises(ExecutionReverted, match="'swap' execution failed \\(revert\\): K"):
        ExecutionResult(CallStatus.REVERT, b"", "K").raise_for_status("swap")


def _provider(make_request):
    provider = Web3Provider.__new__(Web3Provider)
    provider.w3 = SimpleNamespace(provider=SimpleNamespace(make_request=make_request))
    return provider


def test_rpc_error_response_is_a_network_error():
    provider = _provider(lambda method, params: {"jsonrpc": "2.0", "id": 1, "error": {"message": "method not found"}})
    with pytest.raises(NetworkError, match="method not found"):
        provider.make_request("debug_traceCall", [])


def test_transport_failure_is_a_network_error():
    def boom(method, params):
        raise requests.exceptions.ConnectionError("refused")

    with pytest.raises(NetworkError):
        _provider(boom).make_request("debug_traceCall", [])


def test_malformed_response_is_a_network_error():
    with pytest.raises(NetworkError):
        _provider(lambda method, params: "garbage").make_request("debug_traceCall", [])


@pytest.mark.parametrize("reply", [None, "0x", ["frame"]])
def test_trace_reply_that_is_not_an_object_is_a_network_error(reply):
    node = TracingNode(reply)
    overlay = _overlay(node)

    with pytest.raises(NetworkError, match="callTracer"):
        TraceCallExecutor(node).execute(overlay, SENDER, WETH, abi.encode_call("transfer", PAIR, 1))
    assert overlay.accounts == {}


def test_malformed_prestate_diff_is_a_network_error():
    node = TracingNode({"output": "0x"}, diff={"pre": {}, "post": ["not", "accounts"]})

    with pytest.raises(NetworkError, match="post"):
        TraceCallExecutor(node).execute(_overlay(node), SENDER, WETH, abi.encode_call("transfer", PAIR, 1))


def test_unreadable_trace_output_is_a_network_error():
    node = TracingNode({"output": "0xzz"})

    with pytest.raises(NetworkError):
        TraceCallExecutor(node).execute(_overlay(node), SENDER, WETH, b"\x00" * 4)


def test_null_trace_during_a_swap_is_inconclusive():
    world = World()
    node = world.provider
    config = validate_config(SimulationConfig(token=world.token.address, sender=SENDER))
    # eth_call side of the node: funded WETH balance and the pool's reserves
    node.static_calls[WETH] = lambda data: _encode_words(config.fund_amount)
    node.static_calls[world.pair.address] = lambda data: _encode_words(10**21, 10**24, 1)
    node.make_request = lambda method, params: None

    result = SwapSimulator(config, node, TraceCallExecutor(node)).run()

    assert isinstance(result, InconclusiveError)
    assert result.reason.startswith("network error")
    assert result.exit_code == 1


def _web3_stub(**eth):
    provider = Web3Provider.__new__(Web3Provider)
    provider.w3 = SimpleNamespace(eth=SimpleNamespace(**eth))
    return provider


def test_rpc_error_raised_as_value_error_is_a_network_error():
    def rate_limited(*args, **kwargs):
        raise ValueError({"code": -32005, "message": "rate limited"})

    provider = _web3_stub(call=rate_limited, get_storage_at=rate_limited, get_balance=rate_limited)

    with pytest.raises(NetworkError, match="rate limited"):
        provider.call(WETH, abi.encode_call("balanceOf", SENDER))
    with pytest.raises(NetworkError):
        provider.get_storage_at(WETH, 3)
    with pytest.raises(NetworkError):
        provider.get_balance(SENDER)


def test_contract_revert_is_still_execution_reverted():
    def reverts(*args, **kwargs):
        raise ContractLogicError("execution reverted: TRANSFER_BLOCKED")

    with pytest.raises(ExecutionReverted, match="TRANSFER_BLOCKED"):
        _web3_stub(call=reverts).call(WETH, abi.encode_call("balanceOf", SENDER))
