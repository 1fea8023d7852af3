"""Adapters to external collaborators."""
