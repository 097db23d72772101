"""Middleware and exception handlers for the tutorials API."""
