"""
clusterstats Command Line Interface.

Computes and displays balance statistics of cluster snapshots.
"""

from .main import cli, main

__all__ = ["main", "cli"]
