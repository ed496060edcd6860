"""Fetch web pages as markdown and hand their images to the clipboard."""

__version__ = "0.9.5"
