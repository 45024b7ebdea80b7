"""CLI module for contextpipe."""
