"""Allow ``python -m partfill``."""

import sys

from .cli import main

sys.exit(main())
