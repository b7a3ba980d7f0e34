"""Core models and logging setup shared by every simplayback module."""
