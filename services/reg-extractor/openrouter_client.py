"""HTTP client for the OpenRouter chat-completions API.

Uses httpx with configurable timeouts. Failures are never retried: a
rejected or unreachable upstream is reported straight back to the caller.
"""

import logging

import httpx

from config import settings
from prompts import SYSTEM_PROMPT, USER_PROMPT

logger = logging.getLogger(__name__)


class UpstreamRejection(Exception):
    """Provider answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(Exception):
    """Provider could not be reached (connection error or timeout)."""


class OpenRouterClient:
    """Sends one image per call to a multimodal chat model and returns its reply text."""

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        app_title: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self._url = url or settings.OPENROUTER_URL
        self._model = model or settings.MODEL_ID
        self._max_tokens = max_tokens if max_tokens is not None else settings.MAX_TOKENS
        self._app_title = app_title or settings.APP_TITLE

        read_timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.UPSTREAM_CONNECT_TIMEOUT

        self._client = httpx.Client(
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    def close(self):
        self._client.close()

    def build_payload(self, image_url: str) -> dict:
        """Chat request: fixed system turn, then the image plus a short cue."""
        return {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": image_url}},
                        {"type": "text", "text": USER_PROMPT},
                    ],
                },
            ],
        }

    def complete(self, image_url: str) -> str:
        """Send a data-URL image to the model.

        Returns the reply text ("" when the response carries none).
        Raises UpstreamRejection (non-2xx) or UpstreamUnavailable (transport).
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "X-Title": self._app_title,
        }

        try:
            resp = self._client.post(self._url, json=self.build_payload(image_url), headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("Upstream timed out: %s", e)
            raise UpstreamUnavailable(f"Upstream request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("Upstream connection failed: %s", e)
            raise UpstreamUnavailable(f"Cannot reach upstream: {e}") from e

        if not resp.is_success:
            message = _error_message(resp)
            logger.error("Upstream error %d: %s", resp.status_code, message)
            raise UpstreamRejection(message, resp.status_code)

        return _reply_text(resp.json())


def _error_message(resp: httpx.Response) -> str:
    """Provider's error.message when present, else a status-based fallback."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        # An empty message is passed through; only a missing one falls back
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]

    return f"OpenRouter API error: {resp.status_code}"


def _reply_text(data) -> str:
    """Pull choices[0].message.content out of a completion body."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""
