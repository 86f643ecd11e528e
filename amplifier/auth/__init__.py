"""
Account handling for Code Amplifier.

Provides password hashing, bearer token issuing/verification and the
registration/login service used by the API.
"""

from .tokens import TokenManager
from .passwords import hash_password, verify_password
from .users import UserService

__all__ = [
    "TokenManager",
    "UserService",
    "hash_password",
    "verify_password",
]
