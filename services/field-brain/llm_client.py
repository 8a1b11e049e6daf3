"""Async HTTP client for an OpenAI-compatible chat-completions endpoint.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 429/503 and connection errors. Retry is off by
default (LLM_RETRY_ATTEMPTS=1): a failed chunk fails the whole analysis.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)


class LLMServiceUnavailable(Exception):
    """LLM endpoint is temporarily unavailable (retryable: 429, 503, connection error)."""


class LLMServiceError(Exception):
    """LLM endpoint returned a non-retryable error or an unusable body."""


class LLMClient:
    """Async chat-completions client with optional retry and backoff."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._base_url = (base_url or settings.LLM_BASE_URL).rstrip("/")
        self._model = model or settings.LLM_MODEL
        self._temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.LLM_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.LLM_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.LLM_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.LLM_CONNECT_TIMEOUT

        key = api_key if api_key is not None else settings.LLM_API_KEY
        headers = {"Authorization": f"Bearer {key}"} if key else {}

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    @property
    def model(self) -> str:
        return self._model

    async def close(self):
        await self._client.aclose()

    async def complete(self, system: str, prompt: str) -> str:
        """Send one chat completion and return the assistant message text.

        Raises LLMServiceUnavailable (retryable) or LLMServiceError (non-retryable).
        """
        payload = {
            "model": self._model,
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(LLMServiceUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=60,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "LLM service unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        ):
            with attempt:
                return await self._send_completion(payload)

        raise LLMServiceError("LLM completion did not run")

    async def _send_completion(self, payload: dict) -> str:
        """Send a single completion request."""
        try:
            resp = await self._client.post("/chat/completions", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("LLM service connection failed: %s", e)
            raise LLMServiceUnavailable(f"Cannot connect to LLM service: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("LLM service read timeout: %s", e)
            raise LLMServiceUnavailable(f"LLM service read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("LLM service HTTP error: %s", e)
            raise LLMServiceError(f"LLM service HTTP error: {e}") from e

        if resp.status_code in (429, 503):
            detail = _error_detail(resp)
            logger.warning("LLM service returned %d: %s", resp.status_code, detail)
            raise LLMServiceUnavailable(detail)

        if resp.status_code != 200:
            detail = _error_detail(resp)
            logger.error("LLM service error %d: %s", resp.status_code, detail)
            raise LLMServiceError(detail)

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMServiceError(f"Unexpected completion body: {e}") from e

        usage = data.get("usage") or {}
        logger.info(
            "LLM completion: %d chars (tokens in=%s out=%s)",
            len(content or ""),
            usage.get("prompt_tokens", "?"),
            usage.get("completion_tokens", "?"),
        )
        return content or ""

    async def health(self) -> dict:
        """Check the endpoint by listing models. Returns a status dict, never raises."""
        try:
            resp = await self._client.get("/models", timeout=10.0)
            return {"status": "reachable" if resp.status_code == 200 else "error", "http_status": resp.status_code}
        except Exception as e:
            logger.warning("LLM health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def _error_detail(resp: httpx.Response) -> str:
    """Pull a readable message out of an error response."""
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {resp.status_code}"
    if isinstance(error, str):
        return error
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {resp.status_code}"
