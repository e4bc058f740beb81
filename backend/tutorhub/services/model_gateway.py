"""
OpenRouter chat-completions client with primary/fallback model failover.

Only capacity failures (rate limiting, exhausted credits) on the primary
model trigger a single call to the fallback model. Everything else
surfaces immediately.
"""

import logging

import httpx

from tutorhub.config import get_settings
from tutorhub.services.settings_store import AIConfig

logger = logging.getLogger(__name__)
settings = get_settings()

# 402: insufficient credits, 429: rate limited / quota exhausted
CAPACITY_STATUS_CODES = frozenset({402, 429})


class GatewayError(Exception):
    """The completion API call failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: int | str | None = None,
        model: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.model = model


class CapacityError(GatewayError):
    """The model is out of credits or rate limited."""


def _is_capacity_code(value: int | str | None) -> bool:
    try:
        return int(value) in CAPACITY_STATUS_CODES
    except (TypeError, ValueError):
        return False


def _error_payload(body: object) -> dict | None:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return None


class ModelGateway:
    """Calls the completion endpoint, falling back on capacity errors."""

    def __init__(
        self,
        api_key: str,
        primary_model: str,
        fallback_model: str = "",
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.base_url = (base_url or settings.openrouter_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self._transport = transport

    @classmethod
    def from_config(cls, config: AIConfig, **kwargs) -> "ModelGateway":
        return cls(config.api_key, config.primary_model, config.fallback_model, **kwargs)

    async def chat(self, messages: list[dict]) -> str:
        """
        Send the conversation and return the first choice's content.

        Args:
            messages: Ordered list of {"role", "content"} dicts (system
                prompt, replayed history, new user turn).

        Raises:
            GatewayError: The primary call failed with a non-capacity error,
                or no fallback is configured, or the fallback failed too.
        """
        try:
            return await self._complete(self.primary_model, messages)
        except CapacityError as e:
            if not self.fallback_model:
                raise
            logger.warning(
                "Primary model %s out of capacity (status=%s code=%s), trying fallback %s",
                self.primary_model, e.status_code, e.code, self.fallback_model,
            )
            return await self._complete(self.fallback_model, messages)

    async def _complete(self, model: str, messages: list[dict]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_title,
        }
        payload = {"model": model, "messages": messages}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions", json=payload, headers=headers
                )
        except httpx.TimeoutException as e:
            raise GatewayError(f"Request to {model} timed out", model=model) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Failed to reach completion API: {e}", model=model) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        error = _error_payload(body)

        if response.status_code != httpx.codes.OK:
            code = error.get("code") if error else None
            message = (error or {}).get("message") or response.text[:500]
            error_cls = (
                CapacityError
                if response.status_code in CAPACITY_STATUS_CODES or _is_capacity_code(code)
                else GatewayError
            )
            raise error_cls(
                f"API returned status {response.status_code}: {message}",
                status_code=response.status_code,
                code=code,
                model=model,
            )

        if body is None:
            raise GatewayError("Malformed response from completion API", status_code=200, model=model)

        if error is not None:
            code = error.get("code")
            error_cls = CapacityError if _is_capacity_code(code) else GatewayError
            raise error_cls(
                f"API error: {error.get('message', 'unknown error')} (code: {code})",
                status_code=response.status_code,
                code=code,
                model=model,
            )

        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            raise GatewayError("No response choices returned", status_code=200, model=model)

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError, IndexError) as e:
            raise GatewayError("Malformed choice in completion response", model=model) from e
        if not content:
            raise GatewayError("Empty completion content", status_code=200, model=model)
        return content
