"""Command-line front end.

Stands in for an editor binding: takes the selected text and the path of the
document being edited, prints the replacement text, and optionally rewrites
the document in place.

    i18nkey generate "Save Changes" --file src/components/pages/Dashboard.tsx
    i18nkey remove "t('components.pages.dashboard.saveChanges')"
"""

import argparse
import logging
import os
import sys

from . import __version__
from .errors import I18nKeyError
from .keys import compose_key, generate_key, path_segments
from .settings import DEFAULT_SETTINGS_FILE, Settings
from .translation_engine import TranslationEngine

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i18nkey",
        description="Generate i18n keys from UI text and keep JSON translation files in sync.")
    parser.add_argument("--config", help=f"Settings file (default: <workspace>/{DEFAULT_SETTINGS_FILE}).")
    parser.add_argument("--workspace", help="Workspace root that relative paths resolve against.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("key", help="Print the key that would be generated, without writing.")
    p.add_argument("text")
    p.add_argument("--file", help="Document the text comes from.")

    p = sub.add_parser("generate", help="Add the text to every translation file.")
    p.add_argument("text")
    p.add_argument("--file", help="Document the text comes from.")
    p.add_argument("--in-place", action="store_true",
                   help="Replace the first occurrence of the text in --file.")

    p = sub.add_parser("remove", help="Remove a translation call's key from every file.")
    p.add_argument("call", help="Translation call, e.g. t('some.key').")
    p.add_argument("--file", help="Document the call comes from.")
    p.add_argument("--in-place", action="store_true",
                   help="Replace the first occurrence of the call in --file.")

    p = sub.add_parser("lookup", help="Show a key's value in every translation file.")
    p.add_argument("key", help="Dotted key or translation call.")

    return parser


def load_settings(config: str | None, workspace: str | None) -> Settings:
    if workspace:
        workspace = os.path.abspath(workspace)
    if config:
        path = config
    else:
        path = os.path.join(workspace or os.getcwd(), DEFAULT_SETTINGS_FILE)
    return Settings.load(path, workspace_root=workspace)


def read_document(path: str, text: str) -> str:
    """Return the document at ``path``, which must contain ``text``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise I18nKeyError(f"Document is not valid UTF-8: {path}") from e
    if content.find(text) < 0:
        raise I18nKeyError(f"Text not found in {path}: {text}")
    return content


def replace_in_file(path: str, content: str, old: str, new: str):
    """Replace the first occurrence of ``old`` in ``content`` and write it to ``path``."""
    idx = content.find(old)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content[:idx] + new + content[idx + len(old):])
    log.info("Updated %s", path)


def _cmd_key(args, settings: Settings) -> int:
    segments = path_segments(args.file, settings.workspace_root or None)
    print(compose_key(segments, generate_key(args.text)))
    return 0


def _cmd_generate(args, engine: TranslationEngine) -> int:
    old = args.text.strip()
    # checked before any translation file is touched
    content = read_document(args.file, old) if args.in_place else None
    result = engine.generate(args.text, args.file)
    if not result.ok:
        for path, err in result.failed_files.items():
            print(f"{path}: {err}", file=sys.stderr)
        return 1
    if content is not None:
        replace_in_file(args.file, content, old, result.replacement)
    print(result.replacement)
    return 0


def _cmd_remove(args, engine: TranslationEngine) -> int:
    old = args.call.strip()
    content = read_document(args.file, old) if args.in_place else None
    result = engine.remove(args.call)
    if content is not None:
        replace_in_file(args.file, content, old, result.replacement)
    print(result.replacement)
    return 0


def _cmd_lookup(args, engine: TranslationEngine) -> int:
    found = engine.lookup(args.key)
    if not found:
        print(f"No translation found for {args.key}", file=sys.stderr)
        return 1
    for label, value in found.items():
        print(f"{label}: {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if getattr(args, "in_place", False) and not args.file:
        parser.error("--in-place requires --file")

    settings = load_settings(args.config, args.workspace)
    engine = TranslationEngine(settings)

    try:
        if args.command == "key":
            return _cmd_key(args, settings)
        if args.command == "generate":
            return _cmd_generate(args, engine)
        if args.command == "remove":
            return _cmd_remove(args, engine)
        return _cmd_lookup(args, engine)
    except (I18nKeyError, OSError) as e:
        log.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
