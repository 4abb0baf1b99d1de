from __future__ import annotations

import sys

from tempcon.cli import main

sys.exit(main())
