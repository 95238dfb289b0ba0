"""Permite ``python -m locallog``."""

import sys

from .main import main

sys.exit(main())
