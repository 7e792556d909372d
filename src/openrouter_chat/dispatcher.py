"""Single-shot request dispatcher for the OpenRouter chat-completion endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from .config import DEFAULT_ENDPOINT, DEFAULT_REFERER
from .exceptions import MalformedResponseError
from .models import DispatchResult

LOGGER = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error occurred"
API_ERROR_PREFIX = "API Error: "


class _CompletionMessage(BaseModel):
    content: str


class _CompletionChoice(BaseModel):
    message: _CompletionMessage


class CompletionResponse(BaseModel):
    """The slice of a completion body this client reads."""

    choices: list[_CompletionChoice] = Field(min_length=1)


def build_payload(message: str, model: str) -> dict[str, Any]:
    """Return a single-turn request body; no earlier turns are ever included."""
    return {"model": model, "messages": [{"role": "user", "content": message}]}


def extract_completion(data: Any) -> str:
    """Return ``choices[0].message.content`` or raise MalformedResponseError."""
    try:
        parsed = CompletionResponse.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise MalformedResponseError(
            f"Malformed response: {location}: {first.get('msg', 'invalid')}"
        ) from exc
    return parsed.choices[0].message.content


class RequestDispatcher:
    """Send one message to the completion API and normalize the outcome.

    ``send_message`` never raises: API errors, transport failures and
    malformed bodies all come back as ``DispatchResult.failure``.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        referer: str = DEFAULT_REFERER,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.referer = referer
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
        }

    async def send_message(self, message: str, model: str, credential: str) -> DispatchResult:
        """Post ``message`` to ``model`` and return a success or failure result."""
        payload = build_payload(message, model)
        LOGGER.debug(
            "dispatch.request",
            extra={"event": "dispatch.request", "endpoint": self.endpoint, "payload": payload},
        )
        try:
            response = await self._client.post(
                self.endpoint,
                json=payload,
                headers=self._headers(credential),
            )
            if not response.is_success:
                LOGGER.warning(
                    "dispatch.api_error",
                    extra={
                        "event": "dispatch.api_error",
                        "status_code": response.status_code,
                        "model": model,
                    },
                )
                return DispatchResult.failure(f"{API_ERROR_PREFIX}{response.text}")
            content = extract_completion(response.json())
        except MalformedResponseError as exc:
            LOGGER.warning(
                "dispatch.malformed_response",
                extra={"event": "dispatch.malformed_response", "model": model},
            )
            return DispatchResult.failure(str(exc))
        except Exception as exc:  # noqa: BLE001 - every failure becomes a result.
            LOGGER.error(
                "dispatch.transport_error",
                extra={
                    "event": "dispatch.transport_error",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return DispatchResult.failure(str(exc) or UNKNOWN_ERROR)

        LOGGER.info(
            "dispatch.success",
            extra={"event": "dispatch.success", "model": model, "chars": len(content)},
        )
        return DispatchResult.success(content)

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this dispatcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RequestDispatcher:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()
