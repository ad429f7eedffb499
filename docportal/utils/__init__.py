"""Shared helpers for the DocPortal backend."""
