"""
Judge0 CE REST API client (RapidAPI hosted).
"""

import logging
from typing import Any, Dict

import httpx


class ExecutionError(Exception):
    """The execution service could not be reached or rejected the request."""


class ExecutionTimeout(ExecutionError):
    """The submission did not finish within the polling ceiling."""


class Judge0Client:
    """Thin async wrapper around the submissions endpoints."""

    def __init__(self, base_url: str, api_host: str, api_key: str, timeout: float = 30.0):
        """
        Initialize the client.

        Args:
            base_url: Service root, e.g. https://judge0-ce.p.rapidapi.com
            api_host: Value for the X-RapidAPI-Host header.
            api_key: Value for the X-RapidAPI-Key header.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "X-RapidAPI-Host": api_host,
            "X-RapidAPI-Key": api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=self._headers, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logging.error(f"Execution service returned {e.response.status_code} for {path}")
            raise ExecutionError(f"Execution service returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logging.error(f"Execution service request failed for {path}: {e}")
            raise ExecutionError(f"Execution service request failed: {e}") from e

    async def create_submission(
        self,
        source_code: str,
        language_id: int,
        stdin: str = "",
        wait: bool = False,
    ) -> Dict[str, Any]:
        """Create a submission. Returns at least {"token": ...}."""
        return await self._request(
            "POST",
            "/submissions",
            params={"base64_encoded": "false", "wait": "true" if wait else "false"},
            json={"source_code": source_code, "language_id": language_id, "stdin": stdin},
        )

    async def get_submission(self, token: str) -> Dict[str, Any]:
        return await self._request(
            "GET",
            f"/submissions/{token}",
            params={"base64_encoded": "false"},
        )
