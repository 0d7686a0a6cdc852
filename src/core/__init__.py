"""Core layer: settings, logging, exceptions."""
