import json
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
from openai import AsyncOpenAI, APIError

from amplifier.config import Settings
from amplifier.constants import CONNECTION_TEST_MESSAGE


class ChatCompletionError(Exception):
    """The chat-completion endpoint failed or returned an unusable body."""


def extract_content(data: Any) -> str:
    """Pull choices[0].message.content out of a completion body."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None

    if not isinstance(content, str) or not content:
        raise ChatCompletionError("Invalid response from LLM")
    return content


async def llama_stream(url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> AsyncGenerator[str, None]:
    """Stream content deltas from an OpenAI-compatible server-sent-events endpoint."""
    try:
        async with httpx.AsyncClient(timeout=None) as client:
            async with client.stream("POST", url, json=payload, headers=headers or {}) as response:
                if response.status_code != 200:
                    error = await response.aread()
                    logging.error(f"Chat server error {response.status_code}: {error!r}")
                    yield f"\n[SERVER_ERROR] Chat server error {response.status_code}: {error.decode('utf-8', errors='ignore')}"
                    return

                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    data = line[len("data: "):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data)
                    except json.JSONDecodeError:
                        logging.warning(f"Skipping malformed stream line: {data[:80]}")
                        continue
                    choices = chunk.get("choices") or [{}]
                    content = (choices[0].get("delta") or {}).get("content")
                    if content:
                        yield content
    except Exception as e:
        logging.error(f"Chat stream failed: {e}")
        yield f"\n[SERVER_ERROR] {e}"


class ChatClient:
    """Client for the configured chat-completion endpoint."""

    def __init__(self, settings: Settings):
        self.provider = settings.LLM_PROVIDER
        self.url = settings.LLM_API_URL
        self.model = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.max_tokens = settings.LLM_MAX_TOKENS
        self.timeout = settings.LLM_TIMEOUT
        self._api_key = settings.LLM_API_KEY
        self._base_url = settings.LLM_BASE_URL

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _payload(
        self,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

    def _openai_client(self) -> AsyncOpenAI:
        if self._base_url:
            return AsyncOpenAI(api_key=self._api_key, base_url=self._base_url, timeout=self.timeout)
        return AsyncOpenAI(api_key=self._api_key, timeout=self.timeout)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Send a non-streaming completion request.

        Args:
            messages: Role-tagged messages, system prompt included.
            max_tokens: Override for the configured token ceiling.
            temperature: Override for the configured temperature.

        Returns:
            The generated text.

        Raises:
            ChatCompletionError: on transport errors, non-2xx replies or a
                body without choices[0].message.content.
        """
        payload = self._payload(messages, max_tokens, temperature)

        if self.provider == "openai":
            return await self._complete_openai(payload)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logging.error(f"Chat endpoint returned {e.response.status_code}")
            raise ChatCompletionError(f"Chat endpoint returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logging.error(f"Chat endpoint request failed: {e}")
            raise ChatCompletionError(f"Chat endpoint request failed: {e}") from e

        return extract_content(data)

    async def _complete_openai(self, payload: Dict[str, Any]) -> str:
        try:
            async with self._openai_client() as client:
                completion = await client.chat.completions.create(**payload)
        except APIError as e:
            logging.error(f"OpenAI API Error: {e}")
            raise ChatCompletionError(f"OpenAI API Error: {e}") from e
        except Exception as e:
            logging.error(f"OpenAI request failed: {e}")
            raise ChatCompletionError(f"OpenAI request failed: {e}") from e

        if not completion.choices or not completion.choices[0].message.content:
            raise ChatCompletionError("Invalid response from LLM")
        return completion.choices[0].message.content

    async def stream(
        self,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> AsyncGenerator[str, None]:
        payload = self._payload(messages, max_tokens, temperature)
        payload["stream"] = True

        if self.provider != "openai":
            async for chunk in llama_stream(self.url, payload, self._headers()):
                yield chunk
            return

        try:
            async with self._openai_client() as client:
                stream = await client.chat.completions.create(**payload)
                async for chunk in stream:
                    if chunk.choices and chunk.choices[0].delta.content:
                        yield chunk.choices[0].delta.content
        except APIError as e:
            logging.error(f"OpenAI API Error: {e}")
            yield f"\n[SERVER_ERROR] OpenAI API Error: {e}"
        except Exception as e:
            logging.error(f"An unexpected server error occurred: {e}")
            yield f"\n[SERVER_ERROR] An unexpected error occurred: {e}"

    async def ping(self) -> bool:
        """Check that the endpoint answers at all. Never raises."""
        payload = self._payload(
            [{"role": "system", "content": CONNECTION_TEST_MESSAGE}],
            max_tokens=5,
            temperature=0.1,
        )
        try:
            if self.provider == "openai":
                async with self._openai_client() as client:
                    await client.chat.completions.create(**payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload, headers=self._headers())
                    response.raise_for_status()
            return True
        except Exception as e:
            logging.warning(f"Unable to reach chat endpoint: {e}")
            return False
