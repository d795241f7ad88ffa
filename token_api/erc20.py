"""Read-only access to ERC-20 contracts over JSON-RPC."""

import logging
from functools import lru_cache
from typing import Any, Optional, Protocol

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from token_api.config import get_settings
from token_api.exceptions import ContractCallFailedError

logger = logging.getLogger(__name__)

# Standard ERC20 ABI, metadata views only
ERC20_METADATA_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
]

ERC20_METADATA_METHODS = frozenset(entry["name"] for entry in ERC20_METADATA_ABI)


class TokenReader(Protocol):
    """Anything that can run a read-only ERC-20 call and decode its result."""

    async def call(self, address: str, method: str) -> Any:
        ...

    async def is_connected(self) -> bool:
        ...


class Web3TokenReader:
    """TokenReader backed by web3's async HTTP provider."""

    def __init__(self, rpc_url: str, timeout: Optional[float] = None):
        self.rpc_url = rpc_url
        request_kwargs = {}
        if timeout is not None:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs=request_kwargs))

    async def call(self, address: str, method: str) -> Any:
        """
        Call a zero-argument ERC-20 view function.

        Args:
            address: Checksummed contract address
            method: One of name, symbol, decimals, totalSupply

        Returns:
            The decoded return value

        Raises:
            ContractCallFailedError: The node could not execute the call or
                the returned data does not decode against the ERC-20 ABI
        """
        if method not in ERC20_METADATA_METHODS:
            raise ValueError(f"Unsupported ERC-20 method: {method}")

        contract = self.w3.eth.contract(address=address, abi=ERC20_METADATA_ABI)
        try:
            return await getattr(contract.functions, method)().call()
        except (BadFunctionCallOutput, ContractLogicError) as e:
            raise ContractCallFailedError(f"{method}() on {address} failed: {e}") from e

    async def is_connected(self) -> bool:
        try:
            return await self.w3.is_connected()
        except Exception as e:
            logger.warning(f"RPC connectivity check failed: {e}")
            return False

    async def close(self):
        """Close the provider's HTTP session."""
        await self.w3.provider.disconnect()


@lru_cache()
def get_token_reader() -> TokenReader:
    """Get the process-wide reader, created on first use."""
    settings = get_settings()
    logger.info(f"Creating RPC client for {settings.rpc_url}")
    return Web3TokenReader(settings.rpc_url, timeout=settings.rpc_timeout)
