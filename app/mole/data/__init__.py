"""Bundled data files for mole."""
