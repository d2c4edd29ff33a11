"""Async HTTP client for the Mistral chat-completions API.

Uses httpx with explicit connect/read timeouts. Every failure mode (HTTP
error status, network error, timeout, malformed body, missing content)
comes back as a failed ``CompletionResult`` so callers can fall back
without exception handling. Task cancellation is not intercepted.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from bulletin_ocr.utils.config import MistralConfig
from bulletin_ocr.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    """Tagged outcome of one chat-completion call."""

    success: bool
    content: str | None = None
    error: str | None = None
    status_code: int | None = None

    @classmethod
    def ok(cls, content: str, status_code: int = 200) -> "CompletionResult":
        return cls(success=True, content=content, status_code=status_code)

    @classmethod
    def failed(cls, error: str, status_code: int | None = None) -> "CompletionResult":
        return cls(success=False, error=error, status_code=status_code)


class MistralClient:
    """Client for the Mistral chat-completions endpoint.

    Args:
        config: Endpoint, model and timeout settings.
        api_key: Credential. Defaults to the environment variable named by
            ``config.api_key_env``.
        transport: Optional httpx transport, used to substitute a mock in
            tests.
    """

    def __init__(
        self,
        config: MistralConfig,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._api_key = api_key if api_key is not None else config.resolve_api_key()
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(
                config.timeout_seconds, connect=config.connect_timeout_seconds
            ),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MistralClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def build_vision_payload(self, prompt: str, image_urls: list[str]) -> dict[str, Any]:
        """Build the request body for a vision call in JSON-object mode."""
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        content.extend(
            {"type": "image_url", "image_url": {"url": url}} for url in image_urls
        )
        return {
            "model": self.config.vision_model,
            "messages": [{"role": "user", "content": content}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "response_format": {"type": "json_object"},
        }

    def build_text_payload(self, prompt: str) -> dict[str, Any]:
        """Build the request body for a plain-text call."""
        return {
            "model": self.config.text_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    async def complete_vision(self, prompt: str, image_urls: list[str]) -> CompletionResult:
        return await self.complete(self.build_vision_payload(prompt, image_urls))

    async def complete_text(self, prompt: str) -> CompletionResult:
        return await self.complete(self.build_text_payload(prompt))

    async def complete(self, payload: dict[str, Any]) -> CompletionResult:
        """Send one chat-completion request.

        Args:
            payload: Full request body.

        Returns:
            The message content on success, otherwise a failure carrying
            the reason and HTTP status when there was one.
        """
        model = payload.get("model")
        if not self._api_key:
            logger.error("No Mistral API key set (env %s)", self.config.api_key_env)
            return CompletionResult.failed("missing API key")

        try:
            resp = await self._client.post(
                self.config.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.TimeoutException as exc:
            logger.warning("Mistral call to %s timed out: %s", model, exc)
            return CompletionResult.failed(f"timeout: {exc}")
        except httpx.HTTPError as exc:
            logger.warning("Mistral call to %s failed: %s", model, exc)
            return CompletionResult.failed(f"network error: {exc}")

        if not resp.is_success:
            logger.warning(
                "Mistral API error %d for %s: %s",
                resp.status_code,
                model,
                resp.text[:500],
            )
            return CompletionResult.failed(
                f"HTTP {resp.status_code}", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Mistral returned a non-JSON body for %s", model)
            return CompletionResult.failed("invalid response body", resp.status_code)

        content = _message_content(data)
        if not content:
            logger.warning("Mistral returned an empty response for %s", model)
            return CompletionResult.failed("empty response", resp.status_code)

        logger.info("Mistral response received from %s (%d chars)", model, len(content))
        return CompletionResult.ok(content, resp.status_code)


def _message_content(data: Any) -> str | None:
    """Pull ``choices[0].message.content`` out of a response body."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None
