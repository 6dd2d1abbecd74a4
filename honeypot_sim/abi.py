"""
Call data encoding and return data decoding for the handful of contract
functions the simulator touches.
"""

from itertools import chain
from typing import Any, Dict, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector, keccak
from web3 import Web3

from .errors import DecodeError

# Standard ERC-20 ABI (minimal)
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [{"name": "_to", "type": "address"}, {"name": "_value", "type": "uint256"}],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function"
    },
]

# Uniswap V2 Factory ABI (minimal)
FACTORY_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "tokenA", "type": "address"}, {"name": "tokenB", "type": "address"}],
        "name": "getPair",
        "outputs": [{"name": "pair", "type": "address"}],
        "type": "function"
    },
]

# Uniswap V2 Pair ABI (minimal)
PAIR_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"name": "_reserve0", "type": "uint112"},
            {"name": "_reserve1", "type": "uint112"},
            {"name": "_blockTimestampLast", "type": "uint32"}
        ],
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [
            {"name": "amount0Out", "type": "uint256"},
            {"name": "amount1Out", "type": "uint256"},
            {"name": "to", "type": "address"},
            {"name": "data", "type": "bytes"}
        ],
        "name": "swap",
        "outputs": [],
        "type": "function"
    },
]

# Uniswap V2 Router ABI (minimal)
ROUTER_ABI = [
    {
        "constant": True,
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "reserveIn", "type": "uint256"},
            {"name": "reserveOut", "type": "uint256"}
        ],
        "name": "getAmountOut",
        "outputs": [{"name": "amountOut", "type": "uint256"}],
        "type": "function"
    },
]


def _function_table(*abis) -> Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]]:
    """name -> (argument types, return types)"""
    return {
        entry["name"]: (
            tuple(arg["type"] for arg in entry["inputs"]),
            tuple(out["type"] for out in entry["outputs"]),
        )
        for entry in chain(*abis)
        if entry["type"] == "function"
    }


FUNCTIONS = _function_table(ERC20_ABI, FACTORY_ABI, PAIR_ABI, ROUTER_ABI)


def signature(name: str) -> str:
    inputs, _ = _lookup(name)
    return f"{name}({','.join(inputs)})"


def selector(name: str) -> bytes:
    """4-byte function selector."""
    return function_signature_to_4byte_selector(signature(name))


def encode_call(name: str, *args: Any) -> bytes:
    """Selector followed by the ABI-encoded arguments."""
    inputs, _ = _lookup(name)
    if len(args) != len(inputs):
        raise ValueError(f"{name} expects {len(inputs)} arguments, got {len(args)}")
    values = [_normalize(typ, arg) for typ, arg in zip(inputs, args)]
    try:
        return selector(name) + encode(list(inputs), values)
    except EncodingError as e:
        raise ValueError(f"Cannot encode arguments for {name}: {e}") from e


def decode_args(name: str, data: bytes) -> Tuple[Any, ...]:
    """Decode the arguments of call data built by :func:`encode_call`."""
    inputs, _ = _lookup(name)
    data = bytes(data)
    if data[:4] != selector(name):
        raise DecodeError(f"Call data is not a '{name}' call")
    return _decode(name, inputs, data[4:])


def decode_result(name: str, data: bytes) -> Any:
    """
    Decode return data strictly. Single-value returns are unwrapped.
    Empty, truncated or badly padded payloads raise DecodeError.
    """
    _, outputs = _lookup(name)
    values = _decode(name, outputs, bytes(data))
    if len(outputs) == 1:
        return values[0]
    return values


def decode_transfer_result(data: bytes) -> bool:
    """
    Decode the return of ``transfer``.

    Plenty of deployed tokens (USDT among them) return nothing from
    ``transfer``; a failing transfer on those reverts instead. So an empty
    payload counts as a successful transfer. Anything non-empty must be a
    well-formed bool.
    """
    if len(data) == 0:
        return True
    return decode_result("transfer", data)


def function_for_selector(sel: bytes) -> str:
    for name in FUNCTIONS:
        if selector(name) == bytes(sel):
            return name
    raise KeyError(f"Unknown selector 0x{bytes(sel).hex()}")


def mapping_slot(key: str, slot: int) -> int:
    """Storage slot of ``mapping(address => ...)[key]`` declared at ``slot``."""
    return int.from_bytes(keccak(encode(["address", "uint256"], [Web3.to_checksum_address(key), slot])), "big")


def _lookup(name: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    try:
        return FUNCTIONS[name]
    except KeyError:
        raise ValueError(f"Unsupported function: {name}") from None


def _normalize(typ: str, value: Any) -> Any:
    if typ == "address":
        return Web3.to_checksum_address(value)
    return value


def _decode(name: str, types: Tuple[str, ...], data: bytes) -> Tuple[Any, ...]:
    if not types:
        return ()
    try:
        values = decode(list(types), data)
    except DecodingError as e:
        raise DecodeError(f"Malformed '{name}' payload ({len(data)} bytes): {e}") from e
    return tuple(
        Web3.to_checksum_address(v) if typ == "address" else v
        for typ, v in zip(types, values)
    )
