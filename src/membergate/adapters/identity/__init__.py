"""Identity provider adapters."""

from .console import ConsoleIdentityIssuer

__all__ = ["ConsoleIdentityIssuer"]
