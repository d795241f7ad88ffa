import pytest
from fastapi.testclient import TestClient

from token_api.erc20 import get_token_reader
from token_api.exceptions import ContractCallFailedError
from token_api.main import app

USDT_ADDRESS = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


class FakeTokenReader:
    def __init__(self, values=None, errors=None, connected=True):
        self.values = values or {
            "name": "Tether USD",
            "symbol": "USDT",
            "decimals": 6,
            "totalSupply": 1000000000000,
        }
        self.errors = errors or {}
        self.connected = connected
        self.calls = []

    async def call(self, address, method):
        self.calls.append((address, method))
        if method in self.errors:
            raise self.errors[method]
        return self.values[method]

    async def is_connected(self):
        return self.connected


def no_code_reader():
    return FakeTokenReader(
        errors={"name": ContractCallFailedError("Could not transact with/call contract function")}
    )


@pytest.fixture
def fake_reader():
    return FakeTokenReader()


@pytest.fixture
def client(fake_reader):
    limiter = app.state.rate_limiter
    limiter.reset()
    app.dependency_overrides[get_token_reader] = lambda: fake_reader

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.rate_limiter = limiter
    limiter.reset()
