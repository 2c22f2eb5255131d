"""Command-line interface for billsense."""
