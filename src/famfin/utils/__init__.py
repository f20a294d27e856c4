"""Utility modules for famfin."""
