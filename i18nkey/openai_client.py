"""OpenAI-compatible chat-completion client used for auto-translation."""

import logging
import time

import requests

from .errors import (
    TranslationAuthError,
    TranslationError,
    TranslationTransientError,
    TranslationUnavailable,
)
from .language_codes import get_language_name

log = logging.getLogger(__name__)


DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4"

# Status codes worth another attempt.
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
MAX_ATTEMPTS = 3
BASE_DELAY = 1.0    # seconds, doubled per attempt
MAX_DELAY = 10.0


SYSTEM_PROMPT = (
    "You are a professional translator. Translate accurately while preserving "
    "the EXACT formatting of the source text. CRITICAL: Match the exact "
    "capitalization pattern and punctuation of the source. If source starts "
    "lowercase, translation must start lowercase. If source has no period, "
    "translation must have no period. Return ONLY the translated text without "
    "quotes or additional formatting."
)


def build_user_prompt(text: str, source_language: str, target_language: str) -> str:
    """Build the per-string prompt.  Languages may be codes or names."""
    source_name = get_language_name(source_language)
    target_name = get_language_name(target_language)
    return f"""Translate the following text from {source_name} to {target_name}:

{text}

CRITICAL formatting rules:
- Preserve EXACT capitalization pattern of the source text (if source starts lowercase, translation must start lowercase)
- Preserve EXACT punctuation of the source text (if source has no period, translation must have no period)
- Keep the same tone and style as the source
- If it's a UI text, make it natural for the target language while maintaining formatting
- Return ONLY the translated text without quotes or any additional formatting
- Do not add punctuation that doesn't exist in the source
- Do not change capitalization from the source pattern"""


def clean_translation(raw: str) -> str:
    """Strip one pair of enclosing quotes and undo quote escaping.

    ``'"Kaydet"'`` -> ``Kaydet``; ``'Say \\"hi\\"'`` -> ``Say "hi"``.
    """
    text = (raw or "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("\"", "'"):
        text = text[1:-1].strip()
    return text.replace('\\"', '"').replace("\\'", "'")


def backoff_delay(attempt: int, base: float = BASE_DELAY, cap: float = MAX_DELAY) -> float:
    """Delay before retrying after failed ``attempt`` (1-based)."""
    return min(base * (2 ** (attempt - 1)), cap)


class OpenAIClient:
    """Translate single UI strings through a chat-completion endpoint."""

    def __init__(self, api_key: str, endpoint: str = DEFAULT_ENDPOINT,
                 model: str = DEFAULT_MODEL, timeout: int = 30,
                 max_attempts: int = MAX_ATTEMPTS):
        self.api_key = api_key or ""
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.system_prompt = SYSTEM_PROMPT
        self.temperature = 0.3
        self.max_tokens = 1000

    def _chat(self, messages: list) -> str:
        """POST one chat request and return the first choice's content.

        Retries 429/5xx responses and network failures with exponential
        backoff.  401 is raised at once as ``TranslationAuthError``.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        last_status = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                r = requests.post(self.endpoint, json=payload, headers=headers,
                                  timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_status = None
                reason = f"network error: {e}"
            else:
                if r.status_code == 401:
                    raise TranslationAuthError("Invalid OpenAI API key (HTTP 401)")
                if r.status_code in RETRYABLE_STATUS:
                    last_status = r.status_code
                    reason = f"HTTP {r.status_code}"
                elif r.status_code >= 400:
                    raise TranslationError(
                        f"OpenAI API error: HTTP {r.status_code} {r.text[:200]}")
                else:
                    return self._parse_content(r)

            if attempt < self.max_attempts:
                delay = backoff_delay(attempt)
                log.warning("Translation request failed (%s), retrying in %.1fs (attempt %d/%d)",
                            reason, delay, attempt + 1, self.max_attempts)
                time.sleep(delay)
            else:
                log.error("Translation request failed (%s) after %d attempts",
                          reason, self.max_attempts)

        raise TranslationTransientError(
            f"OpenAI API temporarily unavailable ({reason}). Please try again later.",
            status=last_status,
        )

    @staticmethod
    def _parse_content(r: requests.Response) -> str:
        try:
            data = r.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TranslationError(f"Unexpected API response: {e}") from e

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate ``text`` between two languages (codes or names).

        Raises:
            TranslationUnavailable: no API key, or nothing to translate.
            TranslationAuthError: the key was rejected.
            TranslationTransientError: the API stayed unavailable.
            TranslationError: any other failure, including an empty answer.
        """
        if not self.api_key.strip():
            raise TranslationUnavailable("OpenAI API key is not configured")
        if not text or not text.strip():
            raise TranslationUnavailable("Nothing to translate")

        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": build_user_prompt(text, source_language, target_language)},
        ]
        raw = self._chat(messages)
        result = clean_translation(raw)
        if not result:
            raise TranslationError("OpenAI returned an empty translation")

        log.info("Translated %r -> %r (%s -> %s)", text, result, source_language, target_language)
        return result

    def is_available(self) -> bool:
        """Check that the API key works by translating a single word."""
        try:
            self.translate("Hello", "en", "es")
            return True
        except TranslationError as e:
            log.warning("API key check failed: %s", e)
            return False
