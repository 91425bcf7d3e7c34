"""Nested JSON translation file storage.

A translation file is a JSON object whose leaves are strings.  A dotted key
addresses a leaf: ``components.pages.saveChanges`` lives at
``{"components": {"pages": {"saveChanges": "..."}}}``.

Every mutation re-reads the file from disk, applies the change and writes the
whole document back atomically.  Parsed documents are cached for read-only
lookups only (hover text, recovering the original string), keyed by the
file's modification stamp.
"""

import json
import logging
import os
import stat
import tempfile

from .errors import InvalidJsonError, WriteVerificationFailed
from .keys import split_key

log = logging.getLogger(__name__)

JSON_INDENT = 2
NEW_FILE_MODE = 0o644


# ── Reading / writing ────────────────────────────────────────────

def read_json_object(path: str) -> dict:
    """Read a translation file and return its root object.

    Raises:
        FileNotFoundError: the file does not exist.
        InvalidJsonError: the file is empty, not UTF-8, malformed, or not an object.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise InvalidJsonError(path, f"not valid UTF-8 ({e})") from e
    if not content.strip():
        raise InvalidJsonError(path, "file is empty")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidJsonError(path, str(e)) from e
    if not isinstance(data, dict):
        raise InvalidJsonError(path, f"root is {type(data).__name__}, expected object")
    return data


def dump_json(tree: dict) -> str:
    return json.dumps(tree, ensure_ascii=False, indent=JSON_INDENT)


def _read_text(path: str) -> str | None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError:
        return None


def write_json_atomic(path: str, tree: dict):
    """Serialize ``tree`` and replace ``path`` with it.

    Writes to a temporary file next to the target, fsyncs, then swaps it in
    with ``os.replace`` so readers see either the old or the new document.
    The result is read back; on a mismatch the file is rewritten in place
    once more before giving up with ``WriteVerificationFailed``.
    """
    text = dump_json(tree)
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    try:
        mode = stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        mode = NEW_FILE_MODE

    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=directory,
                                         prefix=".i18nkey-", suffix=".tmp",
                                         delete=False) as tf:
            tmp_name = tf.name
            tf.write(text)
            tf.flush()
            os.fsync(tf.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    if _read_text(path) == text:
        return

    log.warning("Read-back of %s does not match what was written, retrying with a direct write", path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    if _read_text(path) != text:
        raise WriteVerificationFailed(path)


# ── Tree traversal ───────────────────────────────────────────────

def _find_child(node: dict, name: str, ignore_case: bool = False,
                want_object: bool = False) -> str | None:
    """Return the key in ``node`` that matches ``name``, or None.

    An exact match always wins.  With ``ignore_case`` the first key equal to
    ``name`` ignoring case is used; ``want_object`` restricts that search to
    keys holding objects.
    """
    if name in node:
        return name
    if not ignore_case:
        return None
    lowered = name.lower()
    for k, v in node.items():
        if k.lower() != lowered:
            continue
        if want_object and not isinstance(v, dict):
            continue
        return k
    return None


def get_nested(tree: dict, segments: list[str], ignore_case: bool = False) -> str | None:
    """Walk ``segments`` down ``tree`` and return the string leaf, if any."""
    node = tree
    for seg in segments[:-1]:
        name = _find_child(node, seg, ignore_case, want_object=True)
        if name is None:
            return None
        child = node[name]
        if not isinstance(child, dict):
            return None
        node = child
    name = _find_child(node, segments[-1], ignore_case)
    if name is None:
        return None
    value = node[name]
    return value if isinstance(value, str) else None


def set_nested(tree: dict, segments: list[str], value: str) -> dict:
    """Set a leaf, creating intermediate objects.

    A non-object value sitting where an intermediate object is needed is
    replaced by an empty object.  Returns the object that received the leaf.
    """
    node = tree
    for seg in segments[:-1]:
        child = node.get(seg)
        if not isinstance(child, dict):
            if seg in node:
                log.warning("Replacing non-object value at %r with an object", seg)
            child = {}
            node[seg] = child
        node = child
    node[segments[-1]] = value
    return node


def match_leaf_key(node: dict, name: str, fuzzy: bool = False) -> str | None:
    """Pick the direct child of ``node`` that a removal of ``name`` targets.

    Exact key first, then the same key ignoring case.  With ``fuzzy`` a
    best-effort heuristic follows: the first key that contains ``name``, or
    whose string value contains it, ignoring case.  The heuristic can hit
    unrelated entries and is therefore opt-in.
    """
    found = _find_child(node, name, ignore_case=True)
    if found is not None or not fuzzy:
        return found

    lowered = name.lower()
    for k, v in node.items():
        if lowered in k.lower() or (isinstance(v, str) and lowered in v.lower()):
            log.warning("No exact key %r, fuzzy match removes %r instead", name, k)
            return k
    return None


# ── Cache ────────────────────────────────────────────────────────

class JsonCache:
    """Parsed translation files, reused while the file on disk is unchanged.

    Entries are validated against ``(st_mtime_ns, st_size)`` on every access.
    Only read-only lookups go through the cache.
    """

    def __init__(self):
        self._entries: dict[str, tuple[tuple[int, int], dict]] = {}

    @staticmethod
    def _stamp(path: str) -> tuple[int, int] | None:
        try:
            st = os.stat(path)
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def get(self, path: str) -> dict | None:
        """Return the parsed document, or None if missing or invalid."""
        key = os.path.abspath(path)
        stamp = self._stamp(key)
        if stamp is None:
            self._entries.pop(key, None)
            return None

        cached = self._entries.get(key)
        if cached is not None and cached[0] == stamp:
            log.debug("Using cached JSON for %s", key)
            return cached[1]

        try:
            tree = read_json_object(key)
        except (InvalidJsonError, OSError) as e:
            log.debug("Cannot read %s: %s", key, e)
            self._entries.pop(key, None)
            return None
        self._entries[key] = (stamp, tree)
        return tree

    def invalidate(self, path: str):
        self._entries.pop(os.path.abspath(path), None)

    def clear(self):
        self._entries.clear()

    def __contains__(self, path: str) -> bool:
        return os.path.abspath(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ── Store ────────────────────────────────────────────────────────

class JsonStore:
    """Upsert, remove and look up dotted keys in JSON translation files."""

    def __init__(self, cache: JsonCache | None = None):
        self.cache = cache if cache is not None else JsonCache()

    def _load_for_write(self, path: str) -> dict:
        """Fresh read for a mutation; never served from the cache."""
        self.cache.invalidate(path)
        if not os.path.exists(path):
            log.info("Translation file does not exist, creating: %s", path)
            return {}
        try:
            return read_json_object(path)
        except InvalidJsonError as e:
            log.warning("%s. Existing content is discarded and the file is reset to {}.", e)
            return {}

    def upsert(self, path: str, key: str, value: str):
        """Set ``key`` to ``value`` in the file at ``path``.

        Missing files (and their directories) are created.  Empty or
        unparseable files are reset to ``{}`` first.  Sibling content is
        kept as is.  Raises ``OSError`` / ``WriteVerificationFailed`` if
        the file cannot be written.
        """
        segments = split_key(key)
        tree = self._load_for_write(path)
        set_nested(tree, segments, value)
        try:
            write_json_atomic(path, tree)
        finally:
            self.cache.invalidate(path)
        log.debug("Set %s in %s", key, path)

    def pop(self, path: str, key: str, fuzzy: bool = False) -> tuple[bool, object]:
        """Delete ``key`` from the file at ``path`` and return what was there.

        Returns ``(True, value)`` after a removal, where ``value`` is the
        deleted JSON value (an object if the matched child held one).
        Returns ``(False, None)``, leaving the file untouched, when the file
        is missing or unparseable, an intermediate segment is missing or not
        an object, or no child matches the last segment.  Emptied parent
        objects are left in place.
        """
        segments = split_key(key)
        self.cache.invalidate(path)
        if not os.path.isfile(path):
            log.info("Translation file does not exist, nothing to remove: %s", path)
            return False, None
        try:
            tree = read_json_object(path)
        except InvalidJsonError as e:
            log.warning("%s. Skipping removal.", e)
            return False, None

        node = tree
        for seg in segments[:-1]:
            child = node.get(seg)
            if not isinstance(child, dict):
                log.info("Path segment %r of %s not found in %s", seg, key, path)
                return False, None
            node = child

        target = match_leaf_key(node, segments[-1], fuzzy=fuzzy)
        if target is None:
            log.info("Key %s not found in %s", key, path)
            return False, None

        value = node.pop(target)
        try:
            write_json_atomic(path, tree)
        finally:
            self.cache.invalidate(path)
        log.debug("Removed %s from %s", key, path)
        return True, value

    def remove(self, path: str, key: str, fuzzy: bool = False) -> bool:
        """Delete ``key`` from the file at ``path``; True if something was removed."""
        return self.pop(path, key, fuzzy=fuzzy)[0]

    def lookup(self, path: str, key: str) -> str | None:
        """Return the string stored under ``key``, matching case-insensitively
        when the exact path is missing."""
        segments = split_key(key)
        tree = self.cache.get(path)
        if tree is None:
            return None
        value = get_nested(tree, segments)
        if value is None:
            value = get_nested(tree, segments, ignore_case=True)
        return value

    def find(self, key: str, files: list[str]) -> dict[str, str]:
        """Look ``key`` up in every file; only files holding a string are returned."""
        found = {}
        for path in files:
            value = self.lookup(path, key)
            if value is not None:
                found[path] = value
        return found
