"""Command-line host for the scanner core."""
