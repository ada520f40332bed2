"""API Client for OpenRouter
============================

Async client for OpenRouter chat completions, used two ways:

- ``chat_completion``: one-shot call (template selection with the fast model)
- ``stream_chat_completion``: incremental text deltas (main content generation)

Both share one circuit breaker so a failing upstream is not hammered.
"""

import aiohttp
import asyncio
import json
import logging
import os
import time
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sitegen.services.service_base import OperationError
from sitegen.utils.circuit_breaker import CircuitBreaker, CircuitBreakerConfig

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (408, 409, 429, 500, 502, 503, 504)

_openrouter_breaker: Optional[CircuitBreaker] = None


def get_openrouter_breaker() -> CircuitBreaker:
    """Get the shared OpenRouter circuit breaker."""
    global _openrouter_breaker
    if _openrouter_breaker is None:
        _openrouter_breaker = CircuitBreaker(
            name="openrouter",
            config=CircuitBreakerConfig(
                failure_threshold=3,  # Open after 3 failures
                recovery_timeout=60.0,  # Wait 60s before retry
                success_threshold=2,  # Need 2 successes to close
            )
        )
    return _openrouter_breaker


class ModelStreamError(OperationError):
    """The streaming completion could not be started or broke mid-stream."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        error = data.get('error', data)
        if isinstance(error, dict):
            return str(error.get('message') or error)
        return str(error)
    return str(data)


def parse_stream_line(line: str) -> Tuple[bool, Optional[str]]:
    """Parse one line of an OpenRouter SSE body.

    Returns ``(done, text)``; ``text`` is the content delta carried by the
    line, if any. Comment lines (``: OPENROUTER PROCESSING``) and blank
    keep-alive lines yield ``(False, None)``.
    """
    line = line.strip()
    if not line or line.startswith(':') or not line.startswith('data:'):
        return False, None
    payload = line[len('data:'):].strip()
    if payload == '[DONE]':
        return True, None
    try:
        chunk = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug(f"Skipping unparseable stream line: {payload[:120]}")
        return False, None
    if isinstance(chunk, dict) and chunk.get('error'):
        raise ModelStreamError(f"Upstream error mid-stream: {_error_message(chunk)}")
    choices = chunk.get('choices') if isinstance(chunk, dict) else None
    if not choices:
        return False, None
    delta = choices[0].get('delta') or {}
    text = delta.get('content')
    return False, text if text else None


class OpenRouterClient:
    """Minimal client for OpenRouter chat completions.

    Usage:
        client = OpenRouterClient()
        success, response, status = await client.chat_completion(
            model="openai/gpt-4o-mini",
            messages=[{"role": "user", "content": "Hello"}],
        )
        async for text in client.stream_chat_completion(model, messages):
            ...
    """

    API_URL = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else os.getenv('OPENROUTER_API_KEY', '')
        self.site_url = os.getenv("OPENROUTER_SITE_URL", "https://sitegen.local")
        self.site_name = os.getenv("OPENROUTER_SITE_NAME", "SiteGen")

        if not self.api_key:
            logger.warning("OPENROUTER_API_KEY not set")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.site_url,
            "X-Title": self.site_name,
            "Content-Type": "application/json",
            "X-Request-ID": str(uuid.uuid4()),
        }

    def _payload(self, model: str, messages: List[Dict[str, str]], temperature: float,
                 max_tokens: int, stream: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": min(max_tokens, 32000),
        }
        if stream:
            payload["stream"] = True
        return payload

    async def chat_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout: int = 60,
        max_retries: int = 1,
    ) -> Tuple[bool, Dict[str, Any], int]:
        """Make a chat completion request.

        Returns:
            Tuple of (success, response_data, status_code)
        """
        if not self.api_key:
            return False, {"error": "API key not configured"}, 401

        breaker = get_openrouter_breaker()
        if not breaker.allow_request():
            return False, {
                "error": f"Circuit breaker open, retry in {breaker.retry_after():.0f}s",
                "circuit_open": True,
            }, 503

        payload = self._payload(model, messages, temperature, max_tokens)
        short_model = model.split('/')[-1]
        last_error = None
        start_time = time.time()

        for attempt in range(max_retries + 1):
            try:
                logger.info(f"🤖 API call → {short_model} (attempt {attempt + 1}/{max_retries + 1})")

                async with aiohttp.ClientSession() as session:
                    async with session.post(
                        self.API_URL,
                        json=payload,
                        headers=self._headers(),
                        timeout=aiohttp.ClientTimeout(total=timeout),
                    ) as response:
                        status_code = response.status
                        if 'application/json' in response.headers.get('Content-Type', ''):
                            try:
                                data = await response.json()
                            except (aiohttp.ContentTypeError, json.JSONDecodeError):
                                data = {"error": f"Invalid JSON: {(await response.text())[:200]}"}
                        else:
                            data = {"error": f"Non-JSON response: {(await response.text())[:200]}"}

                        if status_code == 200:
                            if 'choices' not in data:
                                error_msg = _error_message(data)
                                logger.error(f"Malformed 200 response: {error_msg}")
                                breaker.record_failure()
                                return False, {"error": error_msg}, status_code

                            usage = data.get('usage', {})
                            logger.info(
                                f"✅ {short_model} in {time.time() - start_time:.1f}s "
                                f"({usage.get('prompt_tokens', 0)}→{usage.get('completion_tokens', 0)} tokens)"
                            )
                            breaker.record_success()
                            return True, data, status_code

                        error_msg = _error_message(data)
                        logger.warning(f"API error {status_code} ({short_model}): {error_msg}")

                        if status_code in RETRYABLE_STATUS and attempt < max_retries:
                            backoff = 2 ** attempt * 2
                            logger.info(f"Retrying in {backoff}s...")
                            await asyncio.sleep(backoff)
                            continue

                        if status_code >= 500:
                            breaker.record_failure()
                        return False, data, status_code

            except aiohttp.ClientError as e:
                last_error = str(e)
                logger.warning(f"Network error: {e}")
                if attempt < max_retries:
                    await asyncio.sleep(2 ** attempt * 2)
                    continue
            except asyncio.TimeoutError:
                last_error = "Request timeout"
                logger.warning(f"Timeout after {timeout}s")
                if attempt < max_retries:
                    await asyncio.sleep(2 ** attempt)
                    continue

        breaker.record_failure()
        return False, {"error": last_error or "Unknown error"}, 503

    async def stream_chat_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 32000,
        timeout: int = 600,
    ) -> AsyncIterator[str]:
        """Stream content deltas of a chat completion.

        The HTTP response is released when the generator finishes or is
        closed early (``aclose()`` on cancellation).

        Raises:
            ModelStreamError: missing key, open circuit, non-200 status or an
                error frame inside the stream.
        """
        if not self.api_key:
            raise ModelStreamError("API key not configured", status_code=401)

        breaker = get_openrouter_breaker()
        if not breaker.allow_request():
            raise ModelStreamError(
                f"Circuit breaker open, retry in {breaker.retry_after():.0f}s", status_code=503
            )

        full_messages = list(messages)
        if system_prompt:
            full_messages.insert(0, {"role": "system", "content": system_prompt})
        payload = self._payload(model, full_messages, temperature, max_tokens, stream=True)
        short_model = model.split('/')[-1]
        start_time = time.time()
        chars = 0

        logger.info(f"🤖 Streaming → {short_model} ({len(full_messages)} messages)")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.API_URL,
                    json=payload,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=timeout, sock_read=120),
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        if response.status >= 500:
                            breaker.record_failure()
                        raise ModelStreamError(
                            f"Streaming request failed ({response.status}): {body[:200]}",
                            status_code=response.status,
                        )

                    async for raw_line in response.content:
                        done, text = parse_stream_line(raw_line.decode('utf-8', errors='replace'))
                        if done:
                            break
                        if text:
                            chars += len(text)
                            yield text
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            breaker.record_failure(e)
            raise ModelStreamError(f"Streaming connection failed: {e}") from e

        breaker.record_success()
        logger.info(f"✅ {short_model} streamed {chars} chars in {time.time() - start_time:.1f}s")


_client: Optional[OpenRouterClient] = None


def get_api_client() -> OpenRouterClient:
    """Get shared API client instance."""
    global _client
    if _client is None:
        _client = OpenRouterClient()
    return _client
