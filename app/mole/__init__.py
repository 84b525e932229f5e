"""mole - Disk space reclamation, app removal and maintenance for macOS."""

__version__ = "0.3.0"
