from __future__ import annotations


class StoreError(Exception):
    """Any failure reported by the document store."""


class PermissionDeniedError(StoreError):
    pass


class IndexMissingError(StoreError):
    """The store needs a composite index it does not have for this query."""


class NotFoundError(StoreError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class InvalidQueryError(StoreError):
    pass


class UploadValidationError(ValueError):
    """Malformed admin input, rejected before any store I/O."""


class SheetsExportError(Exception):
    pass
