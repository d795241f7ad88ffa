import asyncio
from types import SimpleNamespace

import pytest
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from token_api.erc20 import ERC20_METADATA_ABI, ERC20_METADATA_METHODS, Web3TokenReader
from token_api.exceptions import ContractCallFailedError

from conftest import USDT_ADDRESS


class FakeContractFunction:
    def __init__(self, outcome):
        self.outcome = outcome

    def __call__(self):
        return self

    async def call(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeEth:
    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.contracts = []

    def contract(self, address, abi):
        self.contracts.append((address, abi))
        functions = SimpleNamespace(
            **{name: FakeContractFunction(outcome) for name, outcome in self.outcomes.items()}
        )
        return SimpleNamespace(functions=functions)


def make_reader(outcomes):
    reader = Web3TokenReader("http://localhost:8545")
    reader.w3 = SimpleNamespace(eth=FakeEth(outcomes))
    return reader


def test_abi_covers_the_metadata_views():
    assert ERC20_METADATA_METHODS == {"name", "symbol", "decimals", "totalSupply"}
    assert all(entry["inputs"] == [] for entry in ERC20_METADATA_ABI)


def test_call_returns_decoded_value():
    reader = make_reader({"symbol": "USDT"})

    assert asyncio.run(reader.call(USDT_ADDRESS, "symbol")) == "USDT"
    assert reader.w3.eth.contracts == [(USDT_ADDRESS, ERC20_METADATA_ABI)]


def test_empty_return_data_becomes_contract_call_failure():
    reader = make_reader({"name": BadFunctionCallOutput("Could not decode contract function call to name()")})

    with pytest.raises(ContractCallFailedError) as exc_info:
        asyncio.run(reader.call(USDT_ADDRESS, "name"))

    assert "name()" in exc_info.value.detail
    assert exc_info.value.message == "Contract call failed, possibly due to incorrect contractAddress."


def test_revert_becomes_contract_call_failure():
    reader = make_reader({"decimals": ContractLogicError("execution reverted")})

    with pytest.raises(ContractCallFailedError):
        asyncio.run(reader.call(USDT_ADDRESS, "decimals"))


def test_transport_errors_propagate_unchanged():
    reader = make_reader({"totalSupply": TimeoutError("read timed out")})

    with pytest.raises(TimeoutError):
        asyncio.run(reader.call(USDT_ADDRESS, "totalSupply"))


def test_unknown_method_is_refused_without_network_access():
    reader = make_reader({})

    with pytest.raises(ValueError):
        asyncio.run(reader.call(USDT_ADDRESS, "transfer"))

    assert reader.w3.eth.contracts == []
