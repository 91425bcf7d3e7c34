"""i18nkey: i18n key generator and JSON translation file synchronizer.

Launch with: python main.py <command> ...
"""

import sys

from i18nkey.cli import main

if __name__ == "__main__":
    sys.exit(main())
