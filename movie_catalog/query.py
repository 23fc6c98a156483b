"""
Query building for the catalog store.
A SearchQuery is a plain mapping-based description of predicates, an optional
KNN clause and a sort key. compile_query is the single place where that
description is translated into the store's native form (predicate callables
checked against the index schema).
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np  # query vectors

from .errors import StoreUnavailable
from .schema import FieldType, IndexSchema

# Operators the builder can emit, and the field types each applies to
CONTAINS = 'contains'
EQUALS = 'eq'
HAS_ALL = 'all'

_ALLOWED_TYPES = {
	CONTAINS: {FieldType.TEXT},
	EQUALS: {FieldType.NUMERIC},
	HAS_ALL: {FieldType.TAG},
}

Predicate = Callable[[Dict[str, Any]], bool]


@dataclass
class SearchQuery:
	predicates: List[Dict[str, Any]] = field(default_factory=list)
	knn: Optional[Dict[str, Any]] = None
	sort_by: Optional[str] = None
	ascending: bool = True


class QueryBuilder:
	"""
	Fluent accumulator for a SearchQuery.
	Every method ignores a missing value (None, blank string, empty list), so
	callers can pass optional request parameters straight through.
	"""

	def __init__(self):
		self._query = SearchQuery()

	def containing(self, field_name: str, value: Optional[str]) -> 'QueryBuilder':
		if value is not None and value.strip():
			self._query.predicates.append({'field': field_name, 'op': CONTAINS, 'value': value.strip()})
		return self

	def equal_to(self, field_name: str, value: Optional[int]) -> 'QueryBuilder':
		if value is not None:
			self._query.predicates.append({'field': field_name, 'op': EQUALS, 'value': value})
		return self

	def having_all(self, field_name: str, values: Optional[Sequence[str]]) -> 'QueryBuilder':
		cleaned = [v.strip() for v in (values or []) if v and v.strip()]
		if cleaned:
			self._query.predicates.append({'field': field_name, 'op': HAS_ALL, 'value': cleaned})
		return self

	def nearest(self, field_name: str, k: int, vector) -> 'QueryBuilder':
		self._query.knn = {'field': field_name, 'k': k, 'vector': np.asarray(vector, dtype='float32')}
		return self

	def sorted_by(self, field_name: str, ascending: bool = True) -> 'QueryBuilder':
		self._query.sort_by = field_name
		self._query.ascending = ascending
		return self

	def build(self) -> SearchQuery:
		return self._query


@dataclass
class CompiledQuery:
	filters: List[Predicate]
	knn: Optional[Dict[str, Any]]
	sort_by: Optional[str]
	ascending: bool

	def matches(self, doc: Dict[str, Any]) -> bool:
		return all(f(doc) for f in self.filters)


def _contains(field_name: str, needle: str) -> Predicate:
	needle = needle.lower()
	return lambda doc: needle in str(doc.get(field_name) or '').lower()


def _equals(field_name: str, value: Any) -> Predicate:
	return lambda doc: doc.get(field_name) == value


def _has_all(field_name: str, values: List[str]) -> Predicate:
	wanted = {v.lower() for v in values}
	return lambda doc: wanted.issubset({str(t).lower() for t in (doc.get(field_name) or [])})


_BUILDERS = {CONTAINS: _contains, EQUALS: _equals, HAS_ALL: _has_all}


def compile_query(query: SearchQuery, schema: IndexSchema) -> CompiledQuery:
	"""Translate a SearchQuery into predicates for the given schema."""
	filters: List[Predicate] = []
	for pred in query.predicates:
		name, op = pred['field'], pred['op']
		if not schema.has_field(name):
			raise StoreUnavailable(f"Unknown field '{name}' in query on index '{schema.name}'")
		spec = schema.field(name)
		if spec.type not in _ALLOWED_TYPES[op]:
			raise StoreUnavailable(f"Operator '{op}' is not supported on {spec.type.value} field '{name}'")
		filters.append(_BUILDERS[op](name, pred['value']))

	knn = None
	if query.knn is not None:
		spec = schema.field(query.knn['field']) if schema.has_field(query.knn['field']) else None
		if spec is None or spec.type != FieldType.VECTOR:
			raise StoreUnavailable(f"'{query.knn['field']}' is not a vector field of index '{schema.name}'")
		vector = np.asarray(query.knn['vector'], dtype='float32').reshape(-1)
		if vector.shape[0] != spec.dimension:
			raise StoreUnavailable(
				f"Query vector dimension ({vector.shape[0]}) doesn't match expected ({spec.dimension})"
			)
		knn = {'field': spec.name, 'k': int(query.knn['k']), 'vector': vector}

	if query.sort_by is not None:
		if not schema.has_field(query.sort_by) or not schema.field(query.sort_by).sortable:
			raise StoreUnavailable(f"Field '{query.sort_by}' is not sortable")

	return CompiledQuery(filters=filters, knn=knn, sort_by=query.sort_by, ascending=query.ascending)


def describe_query(query: SearchQuery) -> str:
	"""Render the query in a RediSearch-like notation for log lines."""
	parts = []
	for pred in query.predicates:
		if pred['op'] == CONTAINS:
			parts.append(f"@{pred['field']}:*{pred['value']}*")
		elif pred['op'] == EQUALS:
			parts.append(f"@{pred['field']}:[{pred['value']} {pred['value']}]")
		else:
			parts.extend(f"@{pred['field']}:{{{v}}}" for v in pred['value'])
	text = ' '.join(parts) or '*'
	if query.knn is not None:
		text = f"({text})=>[KNN {query.knn['k']} @{query.knn['field']} $vector]"
	if query.sort_by:
		text += f" SORTBY {query.sort_by} {'ASC' if query.ascending else 'DESC'}"
	return text
