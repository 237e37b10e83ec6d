#!/usr/bin/env python3
"""Convenience runner for the Subsurface dive-log tools.

Usage:
    python run.py <command> [options]
"""
import sys

from subsurface_tools.main import main

if __name__ == "__main__":
    sys.exit(main())
