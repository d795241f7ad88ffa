"""Errors raised while serving a token details request."""


class TokenApiError(Exception):
    """Base for errors that map onto an error envelope.

    ``message`` is what the client sees. ``detail`` is for the server log
    only and is never sent back.
    """

    status_code = 500
    message = "Internal Server Error. Please try again later."

    def __init__(self, detail=None):
        self.detail = detail
        super().__init__(detail or self.message)


class MissingParameterError(TokenApiError):
    """contractAddress was not supplied."""

    status_code = 400
    message = "contractAddress is required"


class InvalidAddressError(TokenApiError):
    """contractAddress is not a well-formed chain address."""

    status_code = 400
    message = "Invalid contractAddress provided"


class ContractCallFailedError(TokenApiError):
    """The node could not execute a call against the contract."""

    status_code = 500
    message = "Contract call failed, possibly due to incorrect contractAddress."


class UnexpectedFailureError(TokenApiError):
    """Transport or infrastructure failure."""

    status_code = 500
