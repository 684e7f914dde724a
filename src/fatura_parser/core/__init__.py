"""Core error handling and logging utilities."""
