from __future__ import annotations

"""Generation client for the Gemini generative language API."""

from dataclasses import dataclass
import logging

import httpx


class LLMError(RuntimeError):
    """Raised when LLM responses are invalid."""
    pass


logger = logging.getLogger(__name__)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1"
NO_RESPONSE_MESSAGE = "No response generated"
GENERATION_ERROR_PREFIX = "Error generating response"


@dataclass(frozen=True)
class GeminiClient:
    """Text generation backed by the Gemini generateContent endpoint."""
    api_key: str
    model: str
    client: httpx.Client
    base_url: str = DEFAULT_GEMINI_BASE_URL
    temperature: float = 0.7
    max_output_tokens: int = 2048
    timeout: float = 30.0

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> dict[str, object]:
        """Build the request body for a single-turn prompt."""
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def generate_text(self, prompt: str) -> str:
        """Generate text for a fully composed prompt.

        Failures never raise: a non-2xx status yields a message naming the
        status code, an empty candidate list yields ``NO_RESPONSE_MESSAGE`` and
        any transport or parse error yields a generic error message.
        """
        logger.debug("llm_request", extra={"model": self.model, "prompt_length": len(prompt)})
        try:
            response = self.client.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_payload(prompt),
                timeout=self.timeout,
            )
            if not response.is_success:
                logger.error(
                    "llm_backend_error",
                    extra={"status": response.status_code, "body": response.text[:500]},
                )
                return f"Error calling Gemini API: {response.status_code}"
            text = _extract_text(response.json())
        except (httpx.HTTPError, ValueError, LLMError) as exc:
            logger.exception("llm_request_failed", extra={"model": self.model})
            return f"{GENERATION_ERROR_PREFIX}: {type(exc).__name__}"
        if text is None:
            logger.warning("llm_empty_response", extra={"model": self.model})
            return NO_RESPONSE_MESSAGE
        logger.debug("llm_response", extra={"model": self.model, "answer_length": len(text)})
        return text

    def close(self) -> None:
        self.client.close()


def _extract_text(data: object) -> str | None:
    """Return the first candidate's first part text, or None when it has none."""
    if not isinstance(data, dict):
        raise LLMError("Invalid Gemini response")
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise LLMError("Invalid Gemini response: candidates")
    if not candidates:
        return None
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        return None
    part = parts[0] if isinstance(parts[0], dict) else {}
    text = part.get("text")
    return text if isinstance(text, str) else None
