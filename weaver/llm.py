"""HTTP client for an Ollama model server, possibly behind an ngrok tunnel."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import requests

from weaver.config import Config
from weaver.constants import TUNNEL_MARKERS, TUNNEL_SKIP_HEADER
from weaver.errors import (
    ConfigurationError,
    GatewayBlockedError,
    NetworkError,
    UpstreamError,
)
from weaver.utils.cancel import CancelToken

_ROLE_LABELS = {"system": "System", "user": "User", "assistant": "Assistant"}


@dataclass
class ConnectionResult:
    """Outcome of probing the model server."""

    status: Literal["success", "error"]
    message: str
    models: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"


def _normalize_role(role: str) -> str:
    if role in ("ai", "model"):
        return "assistant"
    if role in _ROLE_LABELS:
        return role
    return "user"


def _looks_like_interstitial(body: str) -> bool:
    return any(marker in body for marker in TUNNEL_MARKERS)


def flatten_history(system_prompt: str, history: list[dict[str, str]]) -> str:
    """Render a system prompt and role-tagged turns as one completion prompt.

    Args:
        system_prompt: System prompt text
        history: Ordered turns with 'role' and 'content'

    Returns:
        Prompt that ends with an open "Assistant:" turn
    """
    parts = [f"System: {system_prompt}"]
    for turn in history:
        label = _ROLE_LABELS[_normalize_role(turn["role"])]
        parts.append(f"{label}: {turn['content']}")
    parts.append("Assistant:")
    return "\n\n".join(parts)


class OllamaClient:
    """Ollama REST interface (non-streaming)."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        """Initialize client.

        Args:
            config: Configuration with endpoint URL, model and timeouts
            session: Optional requests session (one is created if omitted)
        """
        self.config = config
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return (self.config.ollama_url or "").rstrip("/")

    def complete(
        self,
        system_prompt: str,
        history: list[dict[str, str]],
        cancel: Optional[CancelToken] = None,
    ) -> str:
        """Send the system prompt and history and return the model's text.

        Uses /api/chat or /api/generate depending on config.api_mode.

        Args:
            system_prompt: System prompt text
            history: Ordered turns with 'role' and 'content'
            cancel: Optional cancellation token, checked before and after the call

        Returns:
            Raw response text (never empty)

        Raises:
            ConfigurationError: URL or model not set
            UpstreamError: Non-2xx status, tunnel interstitial or empty reply
            NetworkError: Host unreachable or request timed out
            CancelledError: Token was cancelled
        """
        self._check_config()

        if self.config.api_mode == "generate":
            prompt = flatten_history(system_prompt, history)
            return self.generate(prompt, cancel=cancel)

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(
            {"role": _normalize_role(t["role"]), "content": t["content"]} for t in history
        )
        payload = {
            "model": self.config.ollama_model,
            "messages": messages,
            "stream": False,
        }
        data = self._post("api/chat", payload, cancel)
        message = data.get("message") or {}
        return self._require_text(message.get("content") if isinstance(message, dict) else None)

    def generate(self, prompt: str, cancel: Optional[CancelToken] = None) -> str:
        """Single-shot completion via /api/generate.

        Args:
            prompt: Full prompt text
            cancel: Optional cancellation token

        Returns:
            Raw response text (never empty)
        """
        self._check_config()
        payload = {
            "model": self.config.ollama_model,
            "prompt": prompt,
            "stream": False,
        }
        data = self._post("api/generate", payload, cancel)
        return self._require_text(data.get("response"))

    def list_models(self) -> list[str]:
        """List model names installed on the server via /api/tags.

        Raises:
            ConfigurationError, UpstreamError, NetworkError
        """
        if not self.config.ollama_url:
            raise ConfigurationError("Ollama URL is not configured. Set WEAVER_OLLAMA_URL")

        data = self._request("GET", "api/tags", timeout=self.config.probe_timeout)
        models = data.get("models") or []
        return [m["name"] for m in models if isinstance(m, dict) and "name" in m]

    def test_connection(self) -> ConnectionResult:
        """Probe the server and classify any failure.

        Returns:
            ConnectionResult; never raises for connection problems
        """
        url = self.config.ollama_url or ""
        if not url.startswith(("http://", "https://")):
            return ConnectionResult(
                status="error",
                message="Invalid URL format. It must start with http:// or https://",
            )

        try:
            models = self.list_models()
        except GatewayBlockedError:
            return ConnectionResult(
                status="error",
                message=(
                    "Connection blocked by the tunneling gateway. Open the URL in a browser, "
                    "click 'Visit Site' to authorize access, then try again."
                ),
            )
        except UpstreamError as e:
            if e.status == 404:
                message = (
                    "Server responded with 404 Not Found. Please ensure your Ollama URL "
                    "is correct and the server is running."
                )
            else:
                message = str(e)
            return ConnectionResult(status="error", message=message)
        except NetworkError as e:
            if e.timed_out:
                message = (
                    f"Connection timed out after {self.config.probe_timeout:g} seconds. Check if "
                    "the server URL is correct, reachable, and not blocked by a firewall."
                )
            else:
                message = str(e)
            return ConnectionResult(status="error", message=message)

        return ConnectionResult(
            status="success",
            message="Successfully connected to Ollama server.",
            models=models,
        )

    def _check_config(self) -> None:
        if not self.config.ollama_url:
            raise ConfigurationError("Ollama URL is not configured. Set WEAVER_OLLAMA_URL")
        if not self.config.ollama_model:
            raise ConfigurationError("Ollama model is not configured. Set WEAVER_MODEL")

    def _post(self, path: str, payload: dict[str, Any], cancel: Optional[CancelToken]) -> dict:
        if cancel is not None:
            cancel.raise_if_cancelled()
        data = self._request("POST", path, json=payload, timeout=self.config.request_timeout)
        # The HTTP call cannot be interrupted; a late cancel discards its result
        if cancel is not None:
            cancel.raise_if_cancelled()
        return data

    def _request(self, method: str, path: str, timeout: float, **kwargs: Any) -> dict:
        """Perform one request and decode its JSON body."""
        url = f"{self.base_url}/{path}"
        headers = {
            "Content-Type": "application/json",
            TUNNEL_SKIP_HEADER: "true",
        }

        try:
            response = self.session.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except requests.Timeout as e:
            raise NetworkError(f"Request to {url} timed out after {timeout:g} seconds", timed_out=True) from e
        except requests.RequestException as e:
            raise NetworkError(f"Cannot reach Ollama server at {self.base_url}: {e}") from e

        body = response.text or ""

        if not (200 <= response.status_code < 300):
            if _looks_like_interstitial(body):
                raise GatewayBlockedError(
                    "Request blocked by tunneling gateway", status=response.status_code
                )
            raise UpstreamError(
                f"Ollama server responded with status {response.status_code}",
                status=response.status_code,
                body=body,
            )

        content_type = response.headers.get("Content-Type", "")
        if "text/html" in content_type or body.lstrip().startswith("<") or _looks_like_interstitial(body):
            raise GatewayBlockedError(
                "Request blocked by tunneling gateway (HTML page instead of JSON)",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Ollama server returned a non-JSON body", status=response.status_code, body=body
            ) from e

        if not isinstance(data, dict):
            raise UpstreamError("Ollama server returned an unexpected JSON shape", status=response.status_code)
        return data

    @staticmethod
    def _require_text(text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            raise UpstreamError("Ollama server returned an empty response")
        return text


def strip_code_fence(text: str) -> str:
    """Remove one surrounding ``` fence (with optional language tag) from model output."""
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```") and "\n" in stripped:
        stripped = stripped[stripped.index("\n") + 1:stripped.rindex("```")]
        return stripped.rstrip("\n")
    return stripped
