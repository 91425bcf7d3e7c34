"""Translation key generation.

Turns selected UI text into a camelCase key segment, turns the path of the
file being edited into a namespace, and joins the two into a dotted key:

    "Save Changes" in src/components/pages/Dashboard.tsx
        -> components.pages.dashboard.saveChanges
"""

import logging
import os
import re
import unicodedata

from . import TRANSLATION_CALL_RE
from .errors import EmptyKeyError

log = logging.getLogger(__name__)


# Longest slice of the selection that feeds the key.  Keeps keys short.
MAX_KEY_SOURCE_CHARS = 30

# Namespace used when there is no active file to derive one from.
DEFAULT_NAMESPACE = ["components", "pages"]

# Folder names that always make it into the namespace.
STRUCTURAL_FOLDERS = ("components", "pages", "views", "containers", "layouts", "sections")

# Latin letters with no Unicode decomposition, so NFD leaves them alone.
_FOLD_TABLE = str.maketrans({
    "ı": "i",    # ı dotless i
    "ø": "o", "Ø": "O",
    "ß": "ss",
    "ł": "l", "Ł": "L",
    "đ": "d", "Đ": "D",
    "æ": "ae", "Æ": "AE",
    "œ": "oe", "Œ": "OE",
    "þ": "th", "Þ": "TH",
    "ð": "d", "Ð": "D",
})

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]+")
# saveChanges -> save Changes, Dashboard2Main -> Dashboard2 Main
_CASE_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")


def fold_diacritics(text: str) -> str:
    """Reduce accented letters to their ASCII base ("İşlem" -> "Islem")."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.translate(_FOLD_TABLE)


def _words(text: str) -> list[str]:
    text = _CASE_BOUNDARY_RE.sub(r"\1 \2", fold_diacritics(text))
    return [w for w in _NON_ALNUM_RE.split(text) if w]


def _camel_join(words: list[str]) -> str:
    if not words:
        return ""
    head = words[0].lower()
    tail = "".join(w[0].upper() + w[1:].lower() for w in words[1:])
    return head + tail


def generate_key(text: str) -> str:
    """Convert selected text into a camelCase key segment.

    Returns an empty string when the text holds no letters or digits at
    all; ``compose_key`` refuses to build a key from that.
    """
    if not text:
        return ""
    source = text.strip()[:MAX_KEY_SOURCE_CHARS]
    try:
        return _camel_join(_words(source))
    except (TypeError, ValueError) as e:
        log.warning("Key normalization failed for %r: %s", source, e)
        return _NON_ALNUM_RE.sub("", source).lower()


def to_camel_case(segment: str) -> str:
    """camelCase a single path component ("user-profile" -> "userProfile")."""
    return _camel_join(_words(segment))


def path_segments(file_path: str | None, workspace_root: str | None = None) -> list[str]:
    """Build the key namespace from the path of the file being edited.

    Directory names are kept when they are structural folders or do not look
    like file names; the file name itself (minus extension) is always added
    last.  Without a file path the fixed ``DEFAULT_NAMESPACE`` is returned.
    """
    if not file_path or not file_path.strip():
        return list(DEFAULT_NAMESPACE)

    rel = file_path
    if workspace_root:
        abs_file = os.path.abspath(file_path)
        abs_root = os.path.abspath(workspace_root)
        try:
            if os.path.commonpath([abs_file, abs_root]) == abs_root:
                rel = os.path.relpath(abs_file, abs_root)
        except ValueError:
            # Different drives on Windows
            pass

    parts = [p for p in rel.replace("\\", "/").split("/") if p and p not in (".", "..")]
    if not parts:
        return list(DEFAULT_NAMESPACE)

    *dirs, filename = parts
    kept = [d for d in dirs
            if d.lower() in STRUCTURAL_FOLDERS or "." not in d]

    kept.append(os.path.splitext(filename)[0])

    segments = []
    for raw in kept:
        seg = to_camel_case(raw)
        if seg and seg not in segments:
            segments.append(seg)

    return segments or list(DEFAULT_NAMESPACE)


def compose_key(segments: list[str], tail: str) -> str:
    """Join namespace segments and the generated tail into a dotted key."""
    if not tail:
        raise EmptyKeyError()
    if not segments:
        return tail
    return ".".join(list(segments) + [tail])


def split_key(key: str) -> list[str]:
    """Split a dotted key into its segments.  Empty segments are rejected."""
    if not key or not key.strip():
        raise EmptyKeyError("Translation key is empty")
    segments = key.strip().split(".")
    if not all(segments):
        raise EmptyKeyError(f"Translation key has an empty segment: {key.strip()}")
    return segments


# ── Translation call helpers ─────────────────────────────────────

def is_translation_call(text: str) -> bool:
    """True if the text contains a call like ``t('some.key')``."""
    return bool(text) and TRANSLATION_CALL_RE.search(text) is not None


def extract_key(text: str) -> str | None:
    """Pull the key out of ``t('some.key')`` / ``t("some.key")``."""
    if not text:
        return None
    m = TRANSLATION_CALL_RE.search(text)
    if not m or not m.group(3).strip():
        return None
    return m.group(3).strip()


def format_call(function_name: str, key: str) -> str:
    """Render the replacement text inserted into the editor."""
    return f"{function_name}('{key}')"
