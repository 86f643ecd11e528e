from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import amplifier.config as config
from amplifier.auth import TokenManager, UserService
from amplifier.execution import Judge0Client, SubmissionService
from amplifier.generators import ChatClient

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_settings():
    return config.Settings()


def get_chat_client() -> ChatClient:
    return ChatClient(get_settings())


def get_submission_service() -> SubmissionService:
    settings = get_settings()
    client = Judge0Client(
        base_url=settings.JUDGE0_API_URL,
        api_host=settings.JUDGE0_API_HOST,
        api_key=settings.JUDGE0_API_KEY,
    )
    return SubmissionService(
        client,
        poll_interval=settings.JUDGE0_POLL_INTERVAL,
        max_polls=settings.JUDGE0_MAX_POLLS,
    )


def get_token_manager() -> TokenManager:
    settings = get_settings()
    return TokenManager(settings.JWT_SECRET, settings.JWT_EXPIRES_MINUTES)


def get_user_service(token_manager: TokenManager = Depends(get_token_manager)) -> UserService:
    return UserService(token_manager)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_manager: TokenManager = Depends(get_token_manager),
) -> str:
    """Extract the user id from the bearer token, rejecting the request otherwise."""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    user_id = token_manager.verify(credentials.credentials)
    if not user_id:
        raise HTTPException(status_code=403, detail="Invalid token.")
    return user_id


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_manager: TokenManager = Depends(get_token_manager),
) -> Optional[str]:
    """Like get_current_user_id, but anonymous or bad tokens just yield None."""
    if not credentials or not credentials.credentials:
        return None
    return token_manager.verify(credentials.credentials)
