"""Translation engine: generate, remove and look up keys across all translation files."""

import logging
import os
from dataclasses import dataclass, field

from .errors import (
    AlreadyTranslatedError,
    FileUnresolvable,
    I18nKeyError,
    KeyNotFoundError,
    NoSelectionError,
    NoTranslationFilesConfigured,
    NotATranslationCallError,
    TranslationAuthError,
    TranslationError,
)
from .json_store import JsonStore
from .keys import (
    compose_key,
    extract_key,
    format_call,
    generate_key,
    is_translation_call,
    path_segments,
    split_key,
)
from .language_codes import language_from_path
from .openai_client import OpenAIClient
from .settings import Settings

log = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    key: str
    replacement: str
    updated_files: list = field(default_factory=list)
    failed_files: dict = field(default_factory=dict)   # path -> error message
    translated: dict = field(default_factory=dict)     # path -> language code
    skipped: list = field(default_factory=list)        # left unchanged after an auth failure
    warnings: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.updated_files)


@dataclass
class RemoveResult:
    key: str
    replacement: str
    original_text: str | None = None
    removed_files: list = field(default_factory=list)
    failed_files: dict = field(default_factory=dict)


class TranslationEngine:
    """Runs the generate and remove flows against the configured files.

    One ``JsonStore`` serves both flows so lookups share its parse cache.
    The OpenAI client is only built when auto-translation actually runs.
    """

    def __init__(self, settings: Settings, store: JsonStore | None = None,
                 client: OpenAIClient | None = None):
        self.settings = settings
        self.store = store if store is not None else JsonStore()
        self.client = client

    def _translator(self) -> OpenAIClient:
        if self.client is None:
            s = self.settings
            self.client = OpenAIClient(
                api_key=s.openai_api_key,
                endpoint=s.api_endpoint,
                model=s.api_model,
                timeout=s.request_timeout,
            )
        return self.client

    def _resolved_files(self, failed: dict) -> list[str]:
        """Absolute paths of the configured files.  Unresolvable ones go to ``failed``."""
        if not self.settings.translation_file_paths:
            raise NoTranslationFilesConfigured()
        paths = []
        for configured in self.settings.translation_file_paths:
            try:
                path = self.settings.resolve_path(configured)
            except FileUnresolvable as e:
                log.error("%s", e)
                failed[configured] = str(e)
                continue
            if path not in paths:
                paths.append(path)
        return paths

    # ── Generate ─────────────────────────────────────────────────

    def _auto_translate_source(self, result: GenerateResult) -> str | None:
        """Source language to translate from, or None when auto-translate is off."""
        s = self.settings
        if not s.auto_translate_enabled:
            return None
        if not s.openai_api_key.strip():
            msg = "Auto-translate is enabled but no OpenAI API key is configured"
        elif not s.source_language_file.strip():
            msg = "Auto-translate is enabled but no source language file is set"
        elif not s.source_language:
            msg = "Auto-translate is enabled but the source language file has no language"
        else:
            return s.source_language
        log.warning("%s. Writing the selected text to every file.", msg)
        result.warnings.append(msg)
        return None

    def generate(self, selection: str, document_path: str | None = None) -> GenerateResult:
        """Create a key for ``selection`` and write it to every translation file.

        The source language file, and any file without a different language
        bound to it, receives the selected text.  With auto-translate on the
        other files receive a translation.  A failed translation falls back to
        the selected text, except for a rejected API key: that stops all
        translation and leaves the remaining target files untouched.

        Raises NoSelectionError, AlreadyTranslatedError,
        NoTranslationFilesConfigured or EmptyKeyError before touching any file.
        Per-file failures end up in ``failed_files``.
        """
        text = selection.strip() if selection else ""
        if not text:
            raise NoSelectionError()
        if is_translation_call(text):
            raise AlreadyTranslatedError(text)
        if not self.settings.translation_file_paths:
            raise NoTranslationFilesConfigured()

        segments = path_segments(document_path, self.settings.workspace_root or None)
        key = compose_key(segments, generate_key(text))
        result = GenerateResult(key=key,
                                replacement=format_call(self.settings.translation_function, key))
        log.info("Generated key %s for %r", key, text)

        source_language = self._auto_translate_source(result)
        auth_failed = False

        for path in self._resolved_files(result.failed_files):
            value = text
            target = None
            if source_language and not self.settings.is_source_file(path):
                target = self.settings.language_for(path)
                if target and target.lower() == source_language.lower():
                    target = None

            if target:
                if auth_failed:
                    log.info("Skipping %s after API key rejection", path)
                    result.skipped.append(path)
                    continue
                try:
                    value = self._translator().translate(text, source_language, target)
                    result.translated[path] = target
                except TranslationAuthError as e:
                    auth_failed = True
                    log.error("%s. Auto-translate stopped, %s left unchanged.", e, path)
                    result.warnings.append(str(e))
                    result.skipped.append(path)
                    continue
                except TranslationError as e:
                    log.warning("Translation to %s failed (%s), writing the selected text", target, e)
                    result.warnings.append(f"Translation to {target} failed: {e}")

            try:
                self.store.upsert(path, key, value)
                result.updated_files.append(path)
            except (OSError, I18nKeyError, ValueError) as e:
                log.error("Failed to update %s: %s", path, e)
                result.failed_files[path] = str(e)

        if not result.updated_files:
            msg = "No translation files were updated"
            log.warning(msg)
            result.warnings.append(msg)
        return result

    # ── Remove ───────────────────────────────────────────────────

    def _source_first(self, paths: list[str]) -> list[str]:
        return sorted(paths, key=lambda p: not self.settings.is_source_file(p))

    def _original_text(self, key: str, paths: list[str]) -> str | None:
        """Value stored under ``key``, preferring the source language file."""
        for path in self._source_first(paths):
            try:
                value = self.store.lookup(path, key)
            except (OSError, I18nKeyError, ValueError) as e:
                log.warning("Cannot read %s from %s: %s", key, path, e)
                continue
            if value is not None:
                return value
        return None

    def remove(self, selection: str) -> RemoveResult:
        """Delete the key named in a ``fn('key')`` selection from every file.

        The replacement is the stored text (source file first).  When the
        lookup misses, for instance because fuzzy matching removed a
        differently named entry, the first removed string is used, then the
        key's last segment.  Raises KeyNotFoundError if no file contained
        the key.
        """
        text = selection.strip() if selection else ""
        if not text:
            raise NoSelectionError()
        key = extract_key(text)
        if key is None:
            raise NotATranslationCallError(text)

        result = RemoveResult(key=key, replacement="")
        paths = self._resolved_files(result.failed_files)

        result.original_text = self._original_text(key, paths)
        fuzzy = self.settings.fuzzy_key_matching
        for path in self._source_first(paths):
            try:
                removed, value = self.store.pop(path, key, fuzzy=fuzzy)
                if removed:
                    result.removed_files.append(path)
                    if result.original_text is None and isinstance(value, str):
                        result.original_text = value
            except (OSError, I18nKeyError, ValueError) as e:
                log.error("Failed to remove %s from %s: %s", key, path, e)
                result.failed_files[path] = str(e)

        if not result.removed_files:
            raise KeyNotFoundError(key)

        result.replacement = (result.original_text if result.original_text is not None
                              else split_key(key)[-1])
        log.info("Removed %s from %d file(s)", key, len(result.removed_files))
        return result

    # ── Lookup ───────────────────────────────────────────────────

    def _label(self, path: str) -> str:
        code = self.settings.language_for(path)
        if code:
            return code
        return language_from_path(path)

    def lookup(self, text: str) -> dict[str, str]:
        """Values for a key (or a ``fn('key')`` call) in every file, by language."""
        text = text.strip() if text else ""
        if not text:
            raise NoSelectionError()
        key = extract_key(text) or text
        failed = {}
        found = {}
        for path, value in self.store.find(key, self._resolved_files(failed)).items():
            label = self._label(path)
            if label in found:
                label = f"{label} ({os.path.basename(path)})"
            found[label] = value
        return found
