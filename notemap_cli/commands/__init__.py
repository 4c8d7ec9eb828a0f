"""Sub-command groups for the notemap CLI."""
