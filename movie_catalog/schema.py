"""
Index schema for the movie catalog.
Declares, per document field, how the catalog store must index it: text
(substring search), numeric (equality, sorting), tag (exact membership),
vector (KNN) and autocomplete (prefix suggestions).
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class FieldType(str, Enum):
	TEXT = 'text'
	NUMERIC = 'numeric'
	TAG = 'tag'
	VECTOR = 'vector'


class VectorAlgorithm(str, Enum):
	FLAT = 'FLAT'
	HNSW = 'HNSW'


class DistanceMetric(str, Enum):
	COSINE = 'COSINE'
	L2 = 'L2'
	IP = 'IP'


@dataclass(frozen=True)
class FieldSpec:
	"""
	Indexing rules for one document field.
	- autocomplete: feed the field value into the store's suggestion dictionary
	- vectorize_from: for vector fields, the text field the embedding is computed from
	"""
	name: str
	type: FieldType
	sortable: bool = False
	autocomplete: bool = False
	algorithm: Optional[VectorAlgorithm] = None
	dimension: Optional[int] = None
	distance_metric: Optional[DistanceMetric] = None
	vector_type: str = 'FLOAT32'
	vectorize_from: Optional[str] = None

	def __post_init__(self):
		if self.type == FieldType.VECTOR:
			if not self.dimension or self.dimension <= 0:
				raise ValueError(f"Vector field '{self.name}' needs a positive dimension")
			if self.algorithm is None or self.distance_metric is None:
				raise ValueError(f"Vector field '{self.name}' needs an algorithm and a distance metric")


@dataclass(frozen=True)
class IndexSchema:
	name: str  # index name, also used as key prefix
	fields: List[FieldSpec]
	id_field: str = 'id'
	payload_fields: Tuple[str, ...] = ()  # copied into autocomplete payloads

	def field(self, name: str) -> FieldSpec:
		for spec in self.fields:
			if spec.name == name:
				return spec
		raise KeyError(f"Field '{name}' is not part of index '{self.name}'")

	def has_field(self, name: str) -> bool:
		return any(spec.name == name for spec in self.fields)

	def vector_fields(self) -> List[FieldSpec]:
		return [spec for spec in self.fields if spec.type == FieldType.VECTOR]

	def autocomplete_fields(self) -> List[FieldSpec]:
		return [spec for spec in self.fields if spec.autocomplete]


def movie_schema(dimension: int = 384) -> IndexSchema:
	"""Schema of the movie index; the vector dimension follows the embedding model."""
	return IndexSchema(
		name='movieIdx',
		fields=[
			FieldSpec('title', FieldType.TEXT, autocomplete=True),
			FieldSpec('year', FieldType.NUMERIC, sortable=True),
			FieldSpec('cast', FieldType.TAG),
			FieldSpec('genres', FieldType.TAG),
			FieldSpec('extract', FieldType.TEXT),
			FieldSpec(
				'embeddedExtract',
				FieldType.VECTOR,
				algorithm=VectorAlgorithm.HNSW,
				dimension=dimension,
				distance_metric=DistanceMetric.COSINE,
				vectorize_from='extract',
			),
		],
		payload_fields=('id', 'year', 'extract', 'thumbnail'),
	)
