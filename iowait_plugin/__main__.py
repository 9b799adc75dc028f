"""Allow ``python -m iowait_plugin``."""

import sys

from .server.cli import main

sys.exit(main())
