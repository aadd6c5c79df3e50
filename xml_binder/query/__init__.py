"""XQuery text construction."""

from .xquery_builder import XQueryBuilder, build_query, build_query_for, parse_filter

__all__ = ['XQueryBuilder', 'build_query', 'build_query_for', 'parse_filter']
