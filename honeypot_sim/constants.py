"""Mainnet addresses and defaults used when nothing else is configured."""

# Ethereum mainnet
MAINNET_CHAIN_ID = 1
DEFAULT_RPC_URL = "https://rpc.flashbots.net/fast"

# Wrapped Ether
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
# WETH9 keeps balanceOf in storage slot 3
WETH_BALANCE_SLOT = 3

# Uniswap V2
UNIV2_FACTORY = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
UNIV2_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"

# Account the simulated trades are made from
DEFAULT_SENDER = "0xe4A6aD6E1B86AB8f2d2f571717592De46bFaF614"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# 1 WETH funded, 10% of it spent on the buy
DEFAULT_FUND_AMOUNT = 10**18
DEFAULT_TRADE_BPS = 1_000
BPS_DENOMINATOR = 10_000
