"""Command-line interface for git-sub."""
