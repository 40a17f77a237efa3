"""
Query engine adapter and the values it exchanges.
"""

from .adapter import QueryEngineAdapter
from .operation import Operation, Result
from .schema import get_schema

__all__ = ["QueryEngineAdapter", "Operation", "Result", "get_schema"]
