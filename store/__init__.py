"""Document store for lock state and audit records"""

from .document_store import (
    DocumentStore,
    JsonFileStore,
    MongoStore,
    NullStore,
    StoreUnavailableError,
    open_store,
)

__all__ = [
    'DocumentStore',
    'JsonFileStore',
    'MongoStore',
    'NullStore',
    'StoreUnavailableError',
    'open_store',
]
