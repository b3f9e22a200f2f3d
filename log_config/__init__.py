"""Logging setup shared by all CamWatch packages."""
