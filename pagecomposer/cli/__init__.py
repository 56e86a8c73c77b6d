"""
Command-line interface for PageComposer
"""

from .main import cli

__all__ = ['cli']
