"""Exceptions raised while configuring and running a simulation."""

from typing import Optional


class HoneypotSimError(Exception):
    """Base error. ``is_honeypot`` is set when the failure itself is a verdict."""

    def __init__(self, message: str, is_honeypot: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        self.is_honeypot = is_honeypot

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, is_honeypot={self.is_honeypot!r})"


class ConfigError(HoneypotSimError):
    """Bad address, URL or chain; raised before the simulation starts."""


class NetworkError(HoneypotSimError):
    """Remote read failed (transport error, timeout, malformed response)."""


class DecodeError(HoneypotSimError):
    """ABI return payload was truncated or malformed."""


class PairNotFound(HoneypotSimError):
    """The factory has no pool for the token pair."""


class InsufficientLiquidity(HoneypotSimError):
    """Pool reserves are empty, so no quote can be made."""


class ExecutionReverted(HoneypotSimError):
    """A simulated call did not finish successfully."""

    def __init__(self, call: str, status: str, reason: str = "", return_data: bytes = b""):
        message = f"'{call}' execution failed ({status})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.call = call
        self.status = status
        self.reason = reason
        self.return_data = return_data
