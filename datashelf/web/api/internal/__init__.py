"""Callbacks for internal services."""
