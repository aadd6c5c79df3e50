"""
XQuery string builder.

Builds FLWOR queries by plain string assembly; the builder performs no I/O
and keeps no state between calls, so identical inputs always produce
byte-identical text. Clause order is fixed:

    for $item in collection('<path>')[//<tag>]
      [where <clause> and <clause> ...]
      [group by $item/<field>]
      [order by $item/<field>]
      return $item | <result><f>{$item/f}</f>...</result>

Filter strings come in two forms:

    "year < 1950"    three whitespace-separated tokens, value emitted verbatim
    "title=1984"     equality shorthand, value emitted single-quoted

The three-token form is tried first. The shorthand only applies to strings
holding a single '=' and no other operator character. Anything else is
skipped without affecting the remaining clauses.

Values are interpolated as literal text and never escaped; filter values
must already be sanitized by the caller.
"""

import logging

from typing import Any, Iterable, List, Optional, Sequence, Union

from ..models import FILTER_OPERATORS, FilterClause, PROJECTION_TAG
from ..mapping.registry import SerializableRegistry, get_registry
from ..utils import StringUtils


FilterSpec = Union[str, FilterClause, Sequence[str]]

ITEM_VARIABLE = "$item"


class XQueryBuilder:
    """Composes query text from a collection path, filters, grouping, ordering and projection."""

    def __init__(self, registry: Optional[SerializableRegistry] = None):
        self.registry = registry or get_registry()
        self.logger = logging.getLogger(__name__)

    def parse_filter(self, raw: FilterSpec) -> Optional[FilterClause]:
        """
        Turn one filter specification into a clause.

        Args:
            raw: FilterClause, (field, operator, value) triple, or filter string

        Returns:
            The clause, or None when the specification is malformed
        """
        if isinstance(raw, FilterClause):
            return raw

        if isinstance(raw, str):
            return self._parse_filter_string(raw)

        if isinstance(raw, (tuple, list)) and len(raw) == 3:
            field, operator, value = (str(part) for part in raw)
            if field and operator in FILTER_OPERATORS:
                return FilterClause(field, operator, value)

        self.logger.debug(f"Skipping malformed filter: {raw!r}")
        return None

    def _parse_filter_string(self, raw: str) -> Optional[FilterClause]:
        tokens = StringUtils.split_whitespace(raw)
        if len(tokens) == 3 and tokens[1] in FILTER_OPERATORS:
            return FilterClause(tokens[0], tokens[1], tokens[2])

        field, _, value = raw.partition('=')
        field = field.strip()
        value = value.strip()
        if (raw.count('=') == 1 and '<' not in raw and '>' not in raw
                and not field.endswith('!') and field and value
                and len(StringUtils.split_whitespace(field)) == 1):
            return FilterClause(field, '=', value, quote_value=True)

        self.logger.debug(f"Skipping malformed filter: {raw!r}")
        return None

    def build(self, collection_path: str, entity_tag: Optional[str] = None,
              filters: Iterable[FilterSpec] = (), group_by: Optional[str] = None,
              order_by: Optional[str] = None, fields: Optional[Sequence[str]] = None) -> str:
        """
        Build query text.

        Args:
            collection_path: Collection path (e.g., '/db/bookshop/novels')
            entity_tag: Optional element name appended as //tag
            filters: Filter specifications, ANDed in order
            group_by: Optional field name for a group by clause
            order_by: Optional field name for an order by clause
            fields: Optional projection; the return clause then emits <result> wrappers

        Returns:
            Query text

        Raises:
            ValueError: If collection_path is empty
        """
        if not StringUtils.safe_string_check(collection_path):
            raise ValueError("collection_path cannot be empty")

        if isinstance(filters, (str, FilterClause)):
            filters = [filters]

        query = f"for {ITEM_VARIABLE} in collection('{collection_path}')"
        if entity_tag:
            query += f"//{entity_tag}"

        conditions = []
        for raw in filters or ():
            clause = self.parse_filter(raw)
            if clause is not None:
                conditions.append(clause.to_xquery(ITEM_VARIABLE))
        if conditions:
            query += " where " + " and ".join(conditions)

        if group_by:
            query += f" group by {ITEM_VARIABLE}/{group_by}"
        if order_by:
            query += f" order by {ITEM_VARIABLE}/{order_by}"

        query += " return " + (self._projection(fields) if fields else ITEM_VARIABLE)
        return query

    def build_for(self, record_type: type, collection_path: str, *filters: FilterSpec,
                  group_by: Optional[str] = None, order_by: Optional[str] = None,
                  fields: Optional[Sequence[str]] = None) -> str:
        """
        Build query text selecting the entity elements of a registered type.

        Raises:
            NotSerializableError: If the type was never registered
        """
        descriptor = self.registry.require_serializable(record_type)
        return self.build(collection_path, descriptor.entity_tag, list(filters),
                          group_by=group_by, order_by=order_by, fields=fields)

    @staticmethod
    def _projection(fields: Sequence[str]) -> str:
        if isinstance(fields, str):
            fields = [fields]
        parts: List[str] = [f"<{f}>{{{ITEM_VARIABLE}/{f}}}</{f}>" for f in fields]
        return f"<{PROJECTION_TAG}>" + "".join(parts) + f"</{PROJECTION_TAG}>"


_default_builder = XQueryBuilder()


def parse_filter(raw: FilterSpec) -> Optional[FilterClause]:
    return _default_builder.parse_filter(raw)


def build_query(collection_path: str, entity_tag: Optional[str] = None,
                filters: Iterable[FilterSpec] = (), group_by: Optional[str] = None,
                order_by: Optional[str] = None, fields: Optional[Sequence[str]] = None) -> str:
    return _default_builder.build(collection_path, entity_tag, filters,
                                  group_by=group_by, order_by=order_by, fields=fields)


def build_query_for(record_type: type, collection_path: str, *filters: Any,
                    group_by: Optional[str] = None, order_by: Optional[str] = None,
                    fields: Optional[Sequence[str]] = None) -> str:
    return _default_builder.build_for(record_type, collection_path, *filters,
                                      group_by=group_by, order_by=order_by, fields=fields)
