"""Core infrastructure: paths, configuration, errors, templating and state."""
