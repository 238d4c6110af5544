"""Filesystem traversal."""
