"""Command-line interface for phoenix."""
