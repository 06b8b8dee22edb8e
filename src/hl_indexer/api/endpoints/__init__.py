"""API endpoint handlers."""
