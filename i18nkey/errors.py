"""Exception types raised by the key generator, JSON store and translator."""


class I18nKeyError(Exception):
    """Base class for every error this package raises on purpose."""


# ── Selection ────────────────────────────────────────────────────

class NoSelectionError(I18nKeyError):
    """The selected text is empty or whitespace only."""

    def __init__(self, message: str = "No text selected"):
        super().__init__(message)


class AlreadyTranslatedError(I18nKeyError):
    """Generate was asked to wrap text that is already a translation call."""

    def __init__(self, selection: str):
        super().__init__(f"Selected text is already a translation key: {selection}")
        self.selection = selection


class NotATranslationCallError(I18nKeyError):
    """Remove was asked to unwrap text that is not a translation call."""

    def __init__(self, selection: str):
        super().__init__(f"Selected text is not a translation key: {selection}")
        self.selection = selection


class EmptyKeyError(I18nKeyError, ValueError):
    """The generated key segment is empty, so no valid key can be composed."""

    def __init__(self, message: str = "Cannot build a translation key from empty text"):
        super().__init__(message)


# ── Translation files ────────────────────────────────────────────

class NoTranslationFilesConfigured(I18nKeyError):
    """Settings list no translation files."""

    def __init__(self, message: str = "No translation files configured"):
        super().__init__(message)


class FileUnresolvable(I18nKeyError):
    """A configured translation file path cannot be turned into a real path."""

    def __init__(self, path: str, reason: str = ""):
        msg = f"Cannot resolve translation file: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.path = path


class InvalidJsonError(I18nKeyError, ValueError):
    """A translation file is empty, malformed, or its root is not an object."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid JSON in {path}: {reason}")
        self.path = path
        self.reason = reason


class KeyNotFoundError(I18nKeyError, KeyError):
    """The key to remove was not present in any translation file."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Translation key not found: {self.key}"


class WriteVerificationFailed(I18nKeyError, OSError):
    """The file content read back after writing differs from what was written."""

    def __init__(self, path: str):
        super().__init__(f"Could not verify write to {path}")
        self.path = path


# ── Auto-translate ───────────────────────────────────────────────

class TranslationError(I18nKeyError):
    """The translation API call failed."""


class TranslationUnavailable(TranslationError):
    """Translation was not attempted (no API key, or nothing to translate)."""


class TranslationAuthError(TranslationError):
    """The API rejected the credentials (HTTP 401).  Never retried."""


class TranslationTransientError(TranslationError, ConnectionError):
    """The API stayed unavailable (429/5xx or network) after all retries."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
