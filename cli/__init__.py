"""Command-line client for the temperature readings service."""
