#!/usr/bin/env python3
"""
Wrapper script for pair stitching.
Makes it easier to run without the -m flag.

Usage:
    python pair_stitch.py left.jpg right.jpg
"""

import sys
from pairstitch.stitch_cli import main

if __name__ == '__main__':
    sys.exit(main())
