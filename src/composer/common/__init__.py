"""Shared helpers for templating, file handling and console output."""
