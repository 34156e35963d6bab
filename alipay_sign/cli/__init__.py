"""
alipay-sign Command Line Interface.

This package provides command-line tools for formatting keys, computing
certificate SNs, signing requests and verifying gateway responses.
"""

# Import the main CLI entry point
from .main import cli

# Re-export for easier imports
__all__ = [
    'cli',
]
