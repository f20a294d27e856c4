"""Command line interface for famfin."""
