"""datashelf API package."""
