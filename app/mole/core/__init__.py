"""Core infrastructure: paths, configuration, credentials and execution."""
