#!/usr/bin/env python3
"""
Entry point for running the bridge as a module.

Usage:
    python -m kontrol [aliases_file] [--config PATH] ...
"""

from kontrol.bridge import main

main()
