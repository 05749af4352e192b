"""Centralized blob store for the application"""

import logging

from conference_registration.backends.blob_store import DatabaseBlobStore
from conference_registration.models.database import engine

logger = logging.getLogger(__name__)

# Global blob store instance
_blob_store = None


def get_blob_store() -> DatabaseBlobStore:
    """Get or create the global blob store instance"""
    global _blob_store
    if _blob_store is None:
        _blob_store = DatabaseBlobStore(engine)
        logger.info("Initialized global blob store")
    return _blob_store
