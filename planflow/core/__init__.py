"""Core configuration, logging and exception base classes."""
