"""
Authentication: registration, login and the current session
"""

from .schemas import Login, Register, TokenResponse

__all__ = ["Login", "Register", "TokenResponse"]
