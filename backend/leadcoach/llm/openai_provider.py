"""
OpenAI LLM Provider.
Supports the Chat Completions and Responses API endpoints of OpenAI and of
OpenAI-compatible gateways (set ``base_url``).
"""

import httpx
import json
import logging
import time
from contextlib import aclosing
from typing import Optional, List, Dict, Any, AsyncGenerator

from .base import LLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Provider for the OpenAI HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _log_completed(self, call: str, model: str, usage: Dict[str, Any], start_time: float, **fields) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"LLM API {call} completed",
            extra={"extra_fields": {
                "provider": "openai",
                "model": model,
                "prompt_tokens": usage.get("prompt_tokens", usage.get("input_tokens", 0)),
                "completion_tokens": usage.get("completion_tokens", usage.get("output_tokens", 0)),
                "total_tokens": usage.get("total_tokens", 0),
                "duration_ms": round(duration_ms, 2),
                **fields,
            }}
        )

    def _log_failed(self, call: str, model: str, start_time: float, error: Exception) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"LLM API {call} failed: {error}",
            exc_info=True,
            extra={"extra_fields": {
                "provider": "openai",
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
            }}
        )

    def _debug_request(self, call: str, payload: Dict[str, Any], messages: List[LLMMessage]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            summary = f"{len(messages)} messages"
            if messages:
                summary += f", last: {messages[-1].content[:200]}"
            logger.debug(
                f"LLM API {call} starting: provider=openai, model={payload['model']}, "
                f"temperature={payload.get('temperature')}, {summary}"
            )

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
        }
        self._debug_request("call", payload, messages)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()

            content = data["choices"][0]["message"]["content"] or ""
            usage = data.get("usage", {})
            self._log_completed("call", data.get("model", self.model), usage, start_time)
            return LLMResponse(
                content=content,
                model=data.get("model", self.model),
                usage=usage,
                raw=data,
            )
        except Exception as e:
            self._log_failed("call", payload["model"], start_time, e)
            raise

    async def chat_completion_stream(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """Stream tokens from the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
            "stream": True,
        }
        self._debug_request("stream", payload, messages)

        content_length = 0
        usage: Dict[str, Any] = {}
        try:
            async with aclosing(self._stream_events(url, payload)) as chunks:
                async for chunk in chunks:
                    choices = chunk.get("choices") or []
                    if choices:
                        delta = choices[0].get("delta", {}).get("content")
                        if delta:
                            content_length += len(delta)
                            yield delta
                    if chunk.get("usage"):
                        usage = chunk["usage"]

            self._log_completed("stream", payload["model"], usage, start_time, content_length=content_length)
        except Exception as e:
            self._log_failed("stream", payload["model"], start_time, e)
            raise

    def _responses_payload(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
        **kwargs
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "input": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
        }
        if max_tokens:
            payload["max_output_tokens"] = max_tokens
        if kwargs.get("tools"):
            payload["tools"] = kwargs["tools"]
        return payload

    async def responses(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Responses API endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/responses"
        payload = self._responses_payload(messages, temperature, max_tokens, **kwargs)
        self._debug_request("call (responses API)", payload, messages)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()

            content = ""
            for item in data.get("output", []):
                if item.get("type") == "message":
                    for block in item.get("content", []):
                        if block.get("type") == "output_text":
                            content += block.get("text", "")

            usage = data.get("usage", {})
            self._log_completed("call (responses API)", data.get("model", self.model), usage, start_time)
            return LLMResponse(
                content=content,
                model=data.get("model", self.model),
                usage=usage,
                raw=data,
            )
        except Exception as e:
            self._log_failed("call (responses API)", payload["model"], start_time, e)
            raise

    async def responses_stream(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """Stream ``response.output_text.delta`` events from the Responses API."""
        start_time = time.time()
        url = f"{self.base_url}/responses"
        payload = self._responses_payload(messages, temperature, max_tokens, **kwargs)
        payload["stream"] = True
        self._debug_request("stream (responses API)", payload, messages)

        content_length = 0
        usage: Dict[str, Any] = {}
        try:
            async with aclosing(self._stream_events(url, payload)) as events:
                async for event in events:
                    event_type = event.get("type")
                    if event_type == "response.output_text.delta" and event.get("delta"):
                        content_length += len(event["delta"])
                        yield event["delta"]
                    elif event_type == "response.completed":
                        usage = (event.get("response") or {}).get("usage") or {}
                        break
                    elif event_type in ("response.failed", "error"):
                        raise RuntimeError(f"Responses stream error: {event}")

            self._log_completed(
                "stream (responses API)", payload["model"], usage, start_time, content_length=content_length
            )
        except Exception as e:
            self._log_failed("stream (responses API)", payload["model"], start_time, e)
            raise

    async def _stream_events(self, url: str, payload: Dict[str, Any]) -> AsyncGenerator[Dict[str, Any], None]:
        """Yield the decoded JSON objects of an SSE response, stopping at ``[DONE]``."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async with client.stream("POST", url, json=payload, headers=self._get_headers()) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    data_str = line[6:].strip()
                    if data_str == "[DONE]":
                        break
                    try:
                        yield json.loads(data_str)
                    except json.JSONDecodeError:
                        # Skip malformed chunks
                        continue
