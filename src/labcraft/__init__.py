"""labcraft: local lab-manual manager with draft autosave and PDF export."""

__version__ = "0.1.0"
