"""Token metadata lookup: validation, concurrent fetch and formatting."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from token_api.erc20 import TokenReader
from token_api.exceptions import InvalidAddressError, MissingParameterError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenDetails:
    """ERC-20 metadata read from chain for a single request."""
    name: str
    symbol: str
    decimals: int
    total_supply: int
    total_supply_formatted: str


def format_units(value: int, decimals: int) -> str:
    """
    Render an integer amount scaled down by 10**decimals.

    Uses integer arithmetic only, so any magnitude and any decimal count are
    exact. The fraction keeps at least one digit: 10**18 with 18 decimals
    renders as "1.0".
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10 ** decimals)
    fraction_digits = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{fraction_digits or '0'}"


def validate_address(contract_address: Optional[str]) -> str:
    """Check the raw query value and return its checksummed form."""
    if not contract_address:
        raise MissingParameterError()
    if not Web3.is_address(contract_address):
        raise InvalidAddressError(f"Rejected address {contract_address!r}")
    return Web3.to_checksum_address(contract_address)


async def fetch_token_details(reader: TokenReader, contract_address: Optional[str]) -> TokenDetails:
    """
    Read name, symbol, decimals and totalSupply for an ERC-20 contract.

    The four calls run concurrently. If any of them fails the exception
    propagates and the results of the others are dropped.

    Raises:
        MissingParameterError: contract_address is empty
        InvalidAddressError: contract_address is not a chain address
        ContractCallFailedError: the contract rejected a call
    """
    address = validate_address(contract_address)

    name, symbol, decimals, total_supply = await asyncio.gather(
        reader.call(address, "name"),
        reader.call(address, "symbol"),
        reader.call(address, "decimals"),
        reader.call(address, "totalSupply"),
    )
    decimals = int(decimals)
    total_supply = int(total_supply)
    logger.debug(f"Fetched {symbol} ({address}): supply={total_supply} decimals={decimals}")

    return TokenDetails(
        name=name,
        symbol=symbol,
        decimals=decimals,
        total_supply=total_supply,
        total_supply_formatted=format_units(total_supply, decimals),
    )
