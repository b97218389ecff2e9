"""Bundled data files for enshrine."""
