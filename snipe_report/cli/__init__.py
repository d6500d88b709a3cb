"""Command-line interface - configuration, command registry and output."""
