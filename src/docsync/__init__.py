"""docsync - documentation site content synchronization toolkit."""

__version__ = "0.3.0"
