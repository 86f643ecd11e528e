"""
User registration, login and profile lookup.
"""

import logging
import re
from typing import Any, Dict, Optional

from amplifier.database import (
    create_user,
    get_user,
    get_user_by_email,
    get_user_by_username,
)
from .passwords import hash_password, verify_password
from .tokens import TokenManager

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
MIN_PASSWORD_LENGTH = 8


def public_user(row: Dict[str, Any]) -> Dict[str, str]:
    """Strip a users row down to what clients may see."""
    return {
        "id": str(row["id"]),
        "username": row["username"],
        "email": row["email"],
    }


def validate_registration(username: str, email: str, password: str) -> Optional[str]:
    """Return the first validation error message, or None."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not EMAIL_RE.match(email):
        return "Please enter a valid email address"
    if not USERNAME_RE.match(username):
        return "Username must be 3-20 characters and contain only letters, numbers, and underscores"
    return None


class UserService:
    """Service for account creation and credential checks."""

    def __init__(self, token_manager: TokenManager):
        """
        Initialize user service.

        Args:
            token_manager: TokenManager used to issue login tokens.
        """
        self.token_manager = token_manager

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        """
        Create an account.

        Args:
            username: 3-20 letters, digits or underscores.
            email: Contact address, unique per account.
            password: At least 8 characters.

        Returns:
            Dict with the public user, or with an "error" message.
        """
        username = username.strip()
        email = email.strip().lower()

        error = validate_registration(username, email, password)
        if error:
            return {"error": error}

        if get_user_by_email(email) or get_user_by_username(username):
            return {"error": "User already exists"}

        row = create_user(username, email, hash_password(password))
        if not row:
            # lost a race with a concurrent registration, or the insert failed
            return {"error": "User already exists"}

        logging.info(f"Registered user {row['id']}")
        return {"user": public_user(row)}

    def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Check credentials and issue a token.

        Returns:
            Dict with token and user, or None for unknown email or wrong password.
        """
        row = get_user_by_email(email.strip().lower())
        if not row or not verify_password(password, row["password_hash"]):
            return None

        return {
            "token": self.token_manager.issue(str(row["id"])),
            "user": public_user(row),
        }

    def get_profile(self, user_id: str) -> Optional[Dict[str, str]]:
        try:
            row = get_user(int(user_id))
        except ValueError:
            return None
        return public_user(row) if row else None
