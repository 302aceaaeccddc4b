"""Command line interface for Dockpool."""
