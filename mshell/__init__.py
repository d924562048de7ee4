"""A small interactive command shell with pipes, redirections, here-documents and built-ins."""

__version__ = "0.1.0"
__all__ = ["__version__"]