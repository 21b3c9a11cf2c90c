"""An interactive command shell with pipes, redirections, here-documents and builtins."""

__version__ = "1.0.0"
__all__ = ["__version__"]