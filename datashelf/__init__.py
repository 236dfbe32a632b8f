"""datashelf package."""
