import pytest

from fakes import SENDER, TOKEN, World, get_amount_out
from honeypot_sim.constants import UNIV2_FACTORY, UNIV2_ROUTER, WETH
from honeypot_sim.errors import InsufficientLiquidity
from honeypot_sim.overlay import StateOverlay
from honeypot_sim.pairs import resolve_pair
from honeypot_sim.pricing import Reserves, get_reserves, quote_amount_out


def _setup(**kwargs):
    world = World(**kwargs)
    overlay = StateOverlay(world.provider, world.provider.get_block_number())
    pair = resolve_pair(world.provider, UNIV2_FACTORY, TOKEN, WETH)
    return world, overlay, pair


def test_reserves_are_oriented_by_input_token():
    world, overlay, pair = _setup(weth_reserve=10, token_reserve=20)

    assert get_reserves(world.executor, overlay, SENDER, pair, WETH) == Reserves(10, 20)
    assert get_reserves(world.executor, overlay, SENDER, pair, TOKEN) == Reserves(20, 10)


def test_quote_comes_from_the_router():
    world, overlay, _ = _setup()
    reserves = Reserves(1000 * 10**18, 2_000_000 * 10**18)

    quote = quote_amount_out(world.executor, overlay, SENDER, UNIV2_ROUTER, 10**17, reserves)

    assert quote == get_amount_out(10**17, *reserves)
    assert (UNIV2_ROUTER, "getAmountOut") in world.executor.queried


def test_zero_reserves_fail_before_any_call():
    world, overlay, _ = _setup()

    with pytest.raises(InsufficientLiquidity):
        quote_amount_out(world.executor, overlay, SENDER, UNIV2_ROUTER, 10**17, Reserves(0, 0))
    assert world.executor.queried == []
