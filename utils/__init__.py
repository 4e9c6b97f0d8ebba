"""HTTP client utilities."""
