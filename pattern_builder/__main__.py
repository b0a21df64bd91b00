# -*- coding: utf-8 -*-
"""Entry point for `python -m pattern_builder`."""

import sys

from pattern_builder.app import main

if __name__ == "__main__":
    sys.exit(main())
