# -*- coding: utf-8 -*-
"""Pattern Builder: infers grouping and role regexes from image filenames."""

__version__ = "0.1.0"
