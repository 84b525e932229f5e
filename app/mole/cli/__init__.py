"""Command-line interface for mole."""
