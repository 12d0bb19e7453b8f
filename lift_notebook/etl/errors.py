"""
Loader exceptions.

ParseError aborts a load: the document or table is structurally unusable.
RowError is raised for a single malformed record; loaders catch it, skip
the record, and report it.
"""


class ParseError(ValueError):
    """Required structure (XML document, CSV columns) is missing or malformed."""


class RowError(ValueError):
    """A single record or row cannot be converted."""
