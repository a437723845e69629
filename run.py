#!/usr/bin/env python3
"""Run InkMap from a source checkout."""

import sys
import os

# Add the project directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from inkmap.launcher import main

if __name__ == "__main__":
    sys.exit(main())
