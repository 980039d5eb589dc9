"""Bundled exercise content."""
