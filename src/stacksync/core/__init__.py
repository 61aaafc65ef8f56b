"""Core models, errors and logging shared across stacksync."""
