"""olio: rich-text document model for help articles and project docs."""

__version__ = "0.3.0"
