"""Templating: kida render service and action return types."""
