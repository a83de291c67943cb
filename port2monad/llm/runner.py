"""Chat-completions runner shared by the planner, transformer and explainer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import CollaboratorError

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents one prompt sent to the model endpoint."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]


class LLMRunner:
    """Executes prompts against an OpenAI-compatible chat-completions endpoint."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    ENV_MODEL_KEYS = ("PORT2MONAD_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("PORT2MONAD_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("PORT2MONAD_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = 4096,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 120.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        self._runner = runner if runner is not None else self._http_runner

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt and return the response text.

        Raises `CollaboratorError` when the endpoint fails or returns nothing.
        """
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise CollaboratorError("LLM runner requires a base_url to be configured.")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 120.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise CollaboratorError(
                f"LLM request failed with status {exc.code}: {message}"
            ) from exc
        except URLError as exc:  # pragma: no cover - depends on runtime
            raise CollaboratorError(f"LLM request failed: {exc.reason}") from exc
        except TimeoutError as exc:  # pragma: no cover - depends on runtime
            raise CollaboratorError("LLM request timed out") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise CollaboratorError("LLM endpoint returned invalid JSON") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise CollaboratorError("LLM endpoint returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return str(base_url).rstrip("/")
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        return (env_value or self.DEFAULT_BASE_URL).rstrip("/")

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["LLMRequest", "LLMRunner"]
