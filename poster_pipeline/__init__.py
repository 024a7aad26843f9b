"""Poster asset pipeline: validate, adaptively compress, and upload event posters."""

__version__ = "0.1.0"
