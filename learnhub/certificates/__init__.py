"""Certificate of completion rendering."""

from .templates import render_certificate


__all__ = ["render_certificate"]
