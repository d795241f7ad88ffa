"""Pydantic models for API responses."""

from pydantic import BaseModel
from typing import Literal


class TokenDetailsData(BaseModel):
    """ERC-20 metadata as returned to clients."""
    name: str
    symbol: str
    decimals: str
    totalSupply: str  # Scaled by decimals
    totalSupplyWithDecimal: str  # Raw integer supply


class SuccessResponse(BaseModel):
    """Response model for a successful /token-details lookup."""
    status: Literal["success"] = "success"
    data: TokenDetailsData


class ErrorResponse(BaseModel):
    """Error envelope shared by every failing endpoint."""
    status: Literal["error"] = "error"
    message: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str
    rpc_connected: bool
