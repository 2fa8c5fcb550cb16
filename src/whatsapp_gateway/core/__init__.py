"""Shared infrastructure: settings, database, logging, security."""
