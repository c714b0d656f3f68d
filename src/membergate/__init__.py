"""membergate - Signup approval service with token lifecycle and rate guard."""

__version__ = "0.1.0"
