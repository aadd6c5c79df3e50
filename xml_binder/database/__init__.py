"""eXist-db store access and query execution."""

from .exist_client import ExistDBClient, get_exist_client, reset_exist_client
from .query_executor import XQueryExecutor

__all__ = [
    'ExistDBClient',
    'XQueryExecutor',
    'get_exist_client',
    'reset_exist_client'
]
