"""
tylang Driver Package

Author: xwest
"""

from .toplevel import TopLevelDriver, DriverOptions, run_source

__all__ = ["TopLevelDriver", "DriverOptions", "run_source"]
