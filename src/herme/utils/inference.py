"""Chat-completion client for the language-model collaborator.

[InferenceGateway][herme.utils.inference.InferenceGateway] posts a
conversation to an OpenAI-compatible ``{base_url}/chat/completions``
endpoint and returns a [ChatResult][herme.models.chat.ChatResult]. Paid
backends attach a Lightning invoice in the top-level ``invoice`` field of
the response body; the gateway passes it through untouched and never pays
it itself.

Examples:
    ```python
    gateway = InferenceGateway(InferenceConfig(base_url="http://localhost:8080/v1"))
    result = await gateway.chat([ChatMessage.user("Explain proof of work")])
    print(result.text, result.invoice)
    await gateway.close()
    ```
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any

import aiohttp
from pydantic import BaseModel, Field

from herme.core.exceptions import InferenceError
from herme.models.chat import ChatMessage, ChatOptions, ChatResult

from .http import read_bounded_json


logger = logging.getLogger(__name__)

ENV_INFERENCE_API_KEY = "HERME_INFERENCE_API_KEY"  # pragma: allowlist secret


class InferenceConfig(BaseModel):
    """Chat-completion backend settings.

    The API key is read from the environment variable named by
    ``api_key_env`` at request time; it is optional for local backends.
    """

    base_url: str = Field(
        default="https://api.openai.com/v1",
        min_length=1,
        description="Base URL of the OpenAI-compatible API",
    )
    api_key_env: str = Field(
        default=ENV_INFERENCE_API_KEY,
        min_length=1,
        description="Environment variable holding the API key",
    )
    model: str = Field(default="gpt-4o", min_length=1, description="Model identifier")
    max_tokens: int = Field(default=1000, ge=1, description="Default output token cap")
    temperature: float = Field(default=0.5, ge=0.0, le=2.0, description="Default temperature")
    max_response_size: int = Field(
        default=1_048_576,
        ge=1024,
        description="Maximum response body size in bytes",
    )


class InferenceGateway:
    """Async chat-completion client with a lazily created aiohttp session.

    Args:
        config: Backend settings.
        system_prompt: Persona prepended when ``ChatOptions.use_system_prompt``.
        timeout: Total time budget of one request in seconds.
        session: Pre-built session, mainly for tests; not closed by
            [close()][herme.utils.inference.InferenceGateway.close].
    """

    def __init__(
        self,
        config: InferenceConfig | None = None,
        *,
        system_prompt: str = "",
        timeout: float = 60.0,  # noqa: ASYNC109
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or InferenceConfig()
        self._system_prompt = system_prompt
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return self._config.base_url.rstrip("/") + "/chat/completions"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            self._owns_session = True
        return self._session

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = os.getenv(self._config.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _payload(self, conversation: Sequence[ChatMessage], options: ChatOptions) -> dict[str, Any]:
        messages = [m.to_dict() for m in conversation]
        if options.use_system_prompt and self._system_prompt:
            messages.insert(0, ChatMessage.system(self._system_prompt).to_dict())
        return {
            "model": self._config.model,
            "messages": messages,
            "max_tokens": options.max_tokens or self._config.max_tokens,
            "temperature": (
                self._config.temperature if options.temperature is None else options.temperature
            ),
        }

    async def chat(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Generate the next assistant message for *conversation*.

        Raises:
            InferenceError: On transport errors, timeouts, HTTP errors,
                oversized or malformed bodies, or an empty answer.
        """
        options = options or ChatOptions()
        payload = self._payload(conversation, options)
        try:
            async with self._get_session().post(
                self.url, json=payload, headers=self._headers()
            ) as response:
                response.raise_for_status()
                data = await read_bounded_json(response, self._config.max_response_size)
        except TimeoutError as e:
            raise InferenceError(f"inference timed out after {self._timeout}s") from e
        except aiohttp.ClientError as e:
            raise InferenceError(f"inference request failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"invalid inference response: {e}") from e

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise InferenceError("inference response has no message content") from e
        if not isinstance(text, str) or not text.strip():
            raise InferenceError("inference returned an empty message")

        invoice = data.get("invoice") if isinstance(data, dict) else None
        if not isinstance(invoice, str) or not invoice:
            invoice = None
        logger.debug("inference_completed chars=%s invoice=%s", len(text), invoice is not None)
        return ChatResult(text=text.strip(), invoice=invoice)

    async def close(self) -> None:
        """Close the owned HTTP session. Safe to call more than once."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
