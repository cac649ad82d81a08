"""
Exception types raised by the MyAsset services.
"""


class MyAssetError(Exception):
    """Base class for errors surfaced to the user."""


class RecordStoreError(MyAssetError):
    """A read or write against the record store failed."""


class CsvImportError(MyAssetError):
    """An uploaded CSV could not be parsed into records."""


class ChatError(MyAssetError):
    """The chat assistant could not produce a reply."""


class ValidationError(MyAssetError):
    """A submitted record breaks a boundary rule."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
