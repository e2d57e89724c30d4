"""
Darkroom - housekeeping tools for an Immich photo library.

Darkroom pairs cover/raw files of the same shot into catalog stacks and
collects assets from a date range and a set of places into new albums.
"""

__version__ = "0.1.0"
__author__ = "Darkroom Contributors"
__license__ = "GPL-2.0"

__all__ = ["__version__"]
