"""Tool handlers package."""

from tools.handlers.connection_handler import ConnectionHandler
from tools.handlers.query_handler import QueryHandler
from tools.handlers.catalog_handler import CatalogHandler

__all__ = [
    'ConnectionHandler',
    'QueryHandler',
    'CatalogHandler',
]
