"""Command-line interfaces for doc toolkit."""
