"""Allow running the renderer with ``python -m rtracer``."""

import sys

from rtracer.cli import main

sys.exit(main())
