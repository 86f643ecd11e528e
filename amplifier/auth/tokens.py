"""
Bearer token issuing and verification using PyJWT (HS256).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt


class TokenManager:
    """Issues and verifies the session tokens handed out at login."""

    ALGORITHM = "HS256"

    def __init__(self, secret: str, expires_minutes: int = 60):
        """
        Initialize the token manager.

        Args:
            secret: HMAC signing secret.
            expires_minutes: Lifetime of issued tokens.
        """
        if not secret:
            logging.warning("No JWT secret provided - tokens cannot be issued")
        self._secret = secret
        self.expires_minutes = expires_minutes

    def issue(self, user_id: str) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: The user's id, stored in the userId claim.

        Returns:
            Encoded JWT.
        """
        now = datetime.now(timezone.utc)
        claims = {
            "userId": str(user_id),
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(claims, self._secret, algorithm=self.ALGORITHM)

    def verify(self, token: str) -> Optional[str]:
        """
        Decode a token.

        Args:
            token: Encoded JWT from the Authorization header.

        Returns:
            The userId claim, or None if the token is expired or invalid.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.ALGORITHM])
        except jwt.ExpiredSignatureError:
            logging.info("Rejected expired token")
            return None
        except jwt.InvalidTokenError as e:
            logging.warning(f"Rejected invalid token: {e}")
            return None

        user_id = claims.get("userId")
        return str(user_id) if user_id is not None else None
