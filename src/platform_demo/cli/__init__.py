"""Command-line interface for platform-demo."""
