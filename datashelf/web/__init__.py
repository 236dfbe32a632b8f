"""WEB API for datashelf."""
