"""i18nkey: generate i18n lookup keys and keep JSON translation files in sync."""

import re

__version__ = "1.2.0"

# Matches a translation call such as t('components.pages.saveChanges') or
# i18n.t("key").  Group 1 is the function name, group 3 the key.
TRANSLATION_CALL_RE = re.compile(r"""(\w+)\((['"])([^'"]*)\2\)""")
