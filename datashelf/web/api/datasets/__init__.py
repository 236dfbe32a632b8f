"""Dataset API."""
