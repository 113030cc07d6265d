#!/usr/bin/env python3
"""
Convenience entry point for running buddyup directly.

Usage: python buddy_up.py [command] [options]
"""

from buddyup.cli.app import app

if __name__ == "__main__":
    app()
