"""Exceptions raised while loading document trees and metadata."""


class InvalidDocumentError(ValueError):
    """
    Exception raised when a serialized document tree or metadata record
    cannot be converted into the in-memory model.
    """

    pass
