"""Authenticated request client for the financial reporting dashboard."""
