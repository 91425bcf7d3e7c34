"""User settings: which translation files to sync and how to call the translator."""

import json
import logging
import os
from dataclasses import dataclass, field

from .errors import FileUnresolvable
from .openai_client import DEFAULT_ENDPOINT, DEFAULT_MODEL

log = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = ".i18nkey.json"
DEFAULT_TRANSLATION_FUNCTION = "t"
API_KEY_ENV = "OPENAI_API_KEY"

# dataclass field -> name used in the settings file
_FIELD_NAMES = {
    "translation_file_paths": "translationFilePaths",
    "translation_function": "translationFunction",
    "auto_translate_enabled": "autoTranslateEnabled",
    "openai_api_key": "openAiApiKey",
    "source_language_file": "sourceLanguageFile",
    "language_file_languages": "languageFileLanguages",
    "fuzzy_key_matching": "fuzzyKeyMatching",
    "api_endpoint": "apiEndpoint",
    "api_model": "apiModel",
    "request_timeout": "requestTimeout",
}


@dataclass
class Settings:
    """Explicit configuration passed to every operation.

    Paths in ``translation_file_paths``, ``source_language_file`` and the keys
    of ``language_file_languages`` may be absolute or relative to
    ``workspace_root``.
    """
    translation_file_paths: list = field(default_factory=list)
    translation_function: str = DEFAULT_TRANSLATION_FUNCTION
    auto_translate_enabled: bool = False
    openai_api_key: str = ""
    source_language_file: str = ""
    language_file_languages: dict = field(default_factory=dict)  # file path -> language code
    fuzzy_key_matching: bool = False
    api_endpoint: str = DEFAULT_ENDPOINT
    api_model: str = DEFAULT_MODEL
    request_timeout: int = 30
    workspace_root: str = ""  # not persisted; set from the settings file location or CLI

    # ── Persistence ──────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {name: getattr(self, attr) for attr, name in _FIELD_NAMES.items()}

    @classmethod
    def from_dict(cls, data: dict, workspace_root: str = "") -> "Settings":
        """Build settings from the settings-file mapping, ignoring unknown keys."""
        settings = cls(workspace_root=workspace_root)
        for attr, name in _FIELD_NAMES.items():
            if name not in data:
                continue
            default = getattr(settings, attr)
            value = data[name]
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    log.warning("Ignoring invalid %s=%r in settings", name, value)
                    continue
            elif isinstance(default, int):
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    log.warning("Ignoring invalid %s=%r in settings", name, value)
                    continue
            elif isinstance(default, list):
                if not isinstance(value, list):
                    log.warning("Ignoring invalid %s=%r in settings", name, value)
                    continue
                value = [str(p) for p in value if str(p).strip()]
            elif isinstance(default, dict):
                if not isinstance(value, dict):
                    log.warning("Ignoring invalid %s=%r in settings", name, value)
                    continue
                value = {str(k): str(v) for k, v in value.items()}
            else:
                value = "" if value is None else str(value)
            setattr(settings, attr, value)

        if not settings.translation_function.strip():
            settings.translation_function = DEFAULT_TRANSLATION_FUNCTION
        return settings

    def save(self, path: str):
        """Write settings to a JSON file."""
        os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    @classmethod
    def load(cls, path: str, workspace_root: str | None = None) -> "Settings":
        """Load settings from a JSON file.

        A missing file gives the defaults; a corrupted one gives the defaults
        and a warning.  The workspace root defaults to the file's directory.
        ``OPENAI_API_KEY`` fills in an empty API key.
        """
        if workspace_root is None:
            workspace_root = os.path.dirname(os.path.abspath(path))

        data = {}
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                log.warning("Settings file %s is unreadable (%s). Using defaults.", path, e)
                data = {}
            if not isinstance(data, dict):
                log.warning("Settings file %s is not a JSON object. Using defaults.", path)
                data = {}
        else:
            log.debug("No settings file at %s, using defaults", path)

        settings = cls.from_dict(data, workspace_root=workspace_root)
        if not settings.openai_api_key:
            settings.openai_api_key = os.environ.get(API_KEY_ENV, "")
        return settings

    # ── Path helpers ─────────────────────────────────────────────

    def resolve_path(self, path: str) -> str:
        """Turn a configured path into an absolute one.

        Raises FileUnresolvable for blank paths, or relative paths without a
        workspace root to anchor them.
        """
        if not path or not path.strip():
            raise FileUnresolvable(path or "", "empty path")
        path = os.path.expanduser(path.strip())
        if os.path.isabs(path):
            return os.path.normpath(path)
        if not self.workspace_root:
            raise FileUnresolvable(path, "relative path and no workspace root")
        return os.path.normpath(os.path.join(self.workspace_root, path))

    def _same_file(self, configured: str, path: str) -> bool:
        try:
            return os.path.normcase(self.resolve_path(configured)) == \
                os.path.normcase(os.path.abspath(path))
        except FileUnresolvable:
            return False

    def is_source_file(self, path: str) -> bool:
        return bool(self.source_language_file) and self._same_file(self.source_language_file, path)

    def language_for(self, path: str) -> str | None:
        """Language code configured for the file at ``path``, if any."""
        for configured, code in self.language_file_languages.items():
            if code and self._same_file(configured, path):
                return code
        return None

    @property
    def source_language(self) -> str | None:
        if not self.source_language_file:
            return None
        code = self.language_file_languages.get(self.source_language_file)
        if code:
            return code
        try:
            return self.language_for(self.resolve_path(self.source_language_file))
        except FileUnresolvable:
            return None

    @property
    def auto_translate_ready(self) -> bool:
        """True when every piece auto-translation needs is configured."""
        return (self.auto_translate_enabled
                and bool(self.openai_api_key.strip())
                and bool(self.source_language_file.strip())
                and bool(self.source_language))
