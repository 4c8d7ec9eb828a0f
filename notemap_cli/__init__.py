"""Command-line interface for notemap."""
