"""Allow ``python -m pgwrite_bench``."""

import sys

from .cli import main

sys.exit(main())
