"""Command-line interface for scrobblecharts."""
