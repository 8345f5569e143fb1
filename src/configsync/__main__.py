#!/usr/bin/env python3
"""Allow ``python -m configsync``."""

import sys

from .main import main

sys.exit(main())
