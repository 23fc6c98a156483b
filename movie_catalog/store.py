"""
Catalog store module.
CatalogStore is the narrow interface the loader, readiness tracker and search
components depend on. InMemoryCatalogStore implements it in-process: JSON
documents in a dict, one FAISS index per vector field, and a suggestion
dictionary for autocomplete.
"""

# Import NumPy for typed arrays passed to FAISS
import numpy as np  # numeric arrays
# Import FAISS (Facebook AI Similarity Search) for nearest-neighbor search
import faiss  # vector index
import threading  # one lock guards all store state
# Pickle for persisting small Python metadata (documents, suggestions, row ids)
import pickle  # simple serialization
from abc import ABC, abstractmethod  # interface definition
from pathlib import Path  # snapshot paths
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple  # type hints

from .errors import StoreUnavailable  # store failure type
from .models import Suggestion  # autocomplete entry
from .query import CompiledQuery, SearchQuery, compile_query, describe_query  # query translation
from .schema import DistanceMetric, FieldType, IndexSchema  # index declaration

# Console logging
from loguru import logger  # console logger

Document = Dict[str, Any]
WriteListener = Callable[[List[str]], None]


class CatalogStore(ABC):
	"""
	Document store with field indexing, KNN vector search and prefix suggestions.
	Implementations raise StoreUnavailable when a call cannot be served.
	"""

	@property
	@abstractmethod
	def schema(self) -> IndexSchema:
		"""Schema passed to create_index."""

	@abstractmethod
	def create_index(self, schema: IndexSchema) -> None:
		"""Declare how documents are indexed; must be called before any write."""

	@abstractmethod
	def exists(self, doc_id: str) -> bool:
		...

	@abstractmethod
	def get(self, doc_id: str) -> Optional[Document]:
		...

	@abstractmethod
	def save_all(self, documents: Iterable[Document]) -> int:
		"""Insert or replace documents; returns how many were written."""

	@abstractmethod
	def count(self) -> int:
		...

	@abstractmethod
	def search(self, query: SearchQuery) -> List[Tuple[Document, Optional[float]]]:
		"""Run a query; each document comes back with its KNN distance (None without KNN)."""

	@abstractmethod
	def suggest(self, prefix: str, max_results: int = 5) -> List[Suggestion]:
		...

	@abstractmethod
	def tag_values(self, field_name: str) -> Iterator[str]:
		"""Yield every value of a tag field, one per occurrence."""

	@abstractmethod
	def set_vector(self, doc_id: str, field_name: str, vector) -> None:
		...

	@abstractmethod
	def missing_vectors(self, field_name: str) -> List[str]:
		"""Ids of stored documents that have no vector in field_name."""

	@abstractmethod
	def add_write_listener(self, listener: WriteListener) -> None:
		"""Register a callback invoked with the ids of every saved batch."""


class _VectorIndex:
	"""FAISS flat index plus the row -> document id mapping."""

	def __init__(self, dimension: int, metric: DistanceMetric):
		self.dimension = dimension  # vector length
		self.metric = metric  # distance metric of the field
		# Inner product on normalized vectors equals cosine similarity
		if metric == DistanceMetric.L2:
			self.index = faiss.IndexFlatL2(dimension)
		else:
			self.index = faiss.IndexFlatIP(dimension)
		self.doc_ids: List[str] = []  # row -> document id
		self.rows: Dict[str, int] = {}  # document id -> row

	def add(self, doc_id: str, vector: np.ndarray) -> None:
		vector = vector.astype('float32').reshape(1, -1)
		if self.metric == DistanceMetric.COSINE:
			faiss.normalize_L2(vector)
		self.index.add(vector)
		self.rows[doc_id] = len(self.doc_ids)
		self.doc_ids.append(doc_id)

	def search(self, vector: np.ndarray, k: int, candidates: Optional[List[str]]) -> List[Tuple[str, float]]:
		"""Return up to k (doc_id, distance) pairs, restricted to candidates when given."""
		rows = None
		if candidates is None:
			limit = min(k, self.index.ntotal)
		else:
			rows = np.array(sorted(self.rows[c] for c in candidates if c in self.rows), dtype='int64')
			limit = min(k, len(rows))
		if limit <= 0:
			return []
		params = None
		if rows is not None:
			# FAISS keeps a raw pointer to rows, which stays alive until we return
			selector = faiss.IDSelectorBatch(len(rows), faiss.swig_ptr(rows))
			params = faiss.SearchParameters(sel=selector)

		query = vector.astype('float32').reshape(1, -1).copy()
		if self.metric == DistanceMetric.COSINE:
			faiss.normalize_L2(query)
		if params is None:
			scores, indices = self.index.search(query, limit)
		else:
			scores, indices = self.index.search(query, limit, params=params)

		results = []
		for score, idx in zip(scores[0], indices[0]):
			if idx < 0:  # -1 indicates an empty slot
				continue
			# L2 already is a distance; similarities become 1 - similarity
			distance = float(score) if self.metric == DistanceMetric.L2 else 1.0 - float(score)
			results.append((self.doc_ids[idx], distance))
		return results


class InMemoryCatalogStore(CatalogStore):
	"""
	Thread-safe in-process catalog store.
	Documents are kept as JSON-style dicts keyed by the schema id field; vector
	fields live only in the FAISS indexes and are attached on read.
	"""

	def __init__(self):
		self._lock = threading.RLock()  # sole synchronization point
		self._schema: Optional[IndexSchema] = None  # set by create_index
		self._docs: Dict[str, Document] = {}  # id -> document
		self._vectors: Dict[str, _VectorIndex] = {}  # vector field -> index
		self._suggestions: Dict[str, Suggestion] = {}  # lowercased text -> entry
		self._listeners: List[WriteListener] = []  # write subscribers

	@property
	def schema(self) -> IndexSchema:
		if self._schema is None:
			raise StoreUnavailable("Index has not been created; call create_index first")
		return self._schema

	def create_index(self, schema: IndexSchema) -> None:
		with self._lock:
			if self._schema is not None:
				if self._schema != schema:
					raise StoreUnavailable(f"Index '{self._schema.name}' already exists with a different schema")
				return
			self._schema = schema
			for spec in schema.vector_fields():
				self._vectors[spec.name] = _VectorIndex(spec.dimension, spec.distance_metric)
			logger.info(
				f"[Store] Created index '{schema.name}' | fields={[f.name for f in schema.fields]} | vectors={list(self._vectors)}"
			)

	def exists(self, doc_id: str) -> bool:
		with self._lock:
			return doc_id in self._docs

	def get(self, doc_id: str) -> Optional[Document]:
		with self._lock:
			doc = self._docs.get(doc_id)
			return self._materialize(doc, with_vectors=True) if doc is not None else None

	def save_all(self, documents: Iterable[Document]) -> int:
		schema = self.schema
		saved: List[str] = []
		with self._lock:
			for doc in documents:
				doc_id = doc.get(schema.id_field)
				if doc_id is None or doc_id == '':
					raise StoreUnavailable(f"Document without '{schema.id_field}' cannot be saved")
				stored = {k: v for k, v in doc.items() if k not in self._vectors}
				self._docs[str(doc_id)] = stored
				for spec in schema.autocomplete_fields():
					self._add_suggestion(stored, spec.name)
				for name in self._vectors:
					if doc.get(name) is not None:
						self._set_vector_locked(str(doc_id), name, doc[name])
				saved.append(str(doc_id))
			listeners = list(self._listeners)
		for listener in listeners:
			listener(saved)
		return len(saved)

	def count(self) -> int:
		with self._lock:
			return len(self._docs)

	def search(self, query: SearchQuery) -> List[Tuple[Document, Optional[float]]]:
		compiled = compile_query(query, self.schema)
		logger.debug(f"[Store] Query: {describe_query(query)}")
		with self._lock:
			matching = [doc_id for doc_id, doc in self._docs.items() if compiled.matches(doc)]
			if compiled.knn is not None:
				hits = self._knn(compiled, matching)
			else:
				hits = [(doc_id, None) for doc_id in matching]
				if compiled.sort_by:
					hits = self._sorted(hits, compiled)
			return [(self._materialize(self._docs[doc_id]), score) for doc_id, score in hits]

	def suggest(self, prefix: str, max_results: int = 5) -> List[Suggestion]:
		needle = (prefix or '').strip().lower()
		if not needle or max_results <= 0:
			return []
		with self._lock:
			matches = [s for key, s in self._suggestions.items() if key.startswith(needle)]
		# sorted() is stable, so equal scores keep insertion order
		matches = sorted(matches, key=lambda s: -s.score)
		return [Suggestion(text=s.text, score=s.score, payload=dict(s.payload)) for s in matches[:max_results]]

	def tag_values(self, field_name: str) -> Iterator[str]:
		if self.schema.field(field_name).type != FieldType.TAG:
			raise StoreUnavailable(f"'{field_name}' is not a tag field")
		with self._lock:
			values = [v for doc in self._docs.values() for v in (doc.get(field_name) or [])]
		for value in values:
			yield value

	def set_vector(self, doc_id: str, field_name: str, vector) -> None:
		with self._lock:
			if doc_id not in self._docs:
				raise StoreUnavailable(f"Document '{doc_id}' does not exist")
			self._set_vector_locked(doc_id, field_name, vector)

	def has_vector(self, doc_id: str, field_name: str) -> bool:
		with self._lock:
			index = self._vectors.get(field_name)
			return index is not None and doc_id in index.rows

	def missing_vectors(self, field_name: str) -> List[str]:
		with self._lock:
			index = self._vectors.get(field_name)
			if index is None:
				raise StoreUnavailable(f"'{field_name}' is not a vector field")
			return [doc_id for doc_id in self._docs if doc_id not in index.rows]

	def add_write_listener(self, listener: WriteListener) -> None:
		with self._lock:
			self._listeners.append(listener)

	def save_snapshot(self, filepath: str) -> None:
		"""
		Persist documents, suggestions and vector indexes.
		- filepath: base path without extension; writes <base>.pkl and one <base>.<field>.index per vector field
		"""
		base = Path(filepath)  # coerce to Path
		base.parent.mkdir(parents=True, exist_ok=True)  # ensure directory exists
		with self._lock:
			metadata = {
				'schema': self.schema,  # index declaration
				'docs': self._docs,  # id -> document
				'suggestions': self._suggestions,  # autocomplete dictionary
				'doc_ids': {name: index.doc_ids for name, index in self._vectors.items()},  # row -> id
			}
			for name, index in self._vectors.items():
				faiss.write_index(index.index, str(self._index_path(base, name)))
			with open(base.with_suffix('.pkl'), 'wb') as f:
				pickle.dump(metadata, f)  # serialize metadata
		logger.info(f"[Store] Saved snapshot of {len(self._docs)} documents to {base}")

	@classmethod
	def load_snapshot(cls, filepath: str) -> 'InMemoryCatalogStore':
		"""Rebuild a store written by save_snapshot."""
		base = Path(filepath)  # coerce to Path
		metadata_path = base.with_suffix('.pkl')
		if not metadata_path.exists():
			raise StoreUnavailable(f"Snapshot metadata not found: {metadata_path}")
		with open(metadata_path, 'rb') as f:
			metadata = pickle.load(f)

		store = cls()
		store.create_index(metadata['schema'])
		store._docs = metadata['docs']
		store._suggestions = metadata['suggestions']
		for name, index in store._vectors.items():
			index_path = cls._index_path(base, name)
			if not index_path.exists():
				raise StoreUnavailable(f"Snapshot index not found: {index_path}")
			index.index = faiss.read_index(str(index_path))
			index.doc_ids = list(metadata['doc_ids'][name])
			index.rows = {doc_id: row for row, doc_id in enumerate(index.doc_ids)}
		logger.info(f"[Store] Loaded snapshot from {base} | documents={len(store._docs)}")
		return store

	@staticmethod
	def snapshot_exists(filepath: str) -> bool:
		return Path(filepath).with_suffix('.pkl').exists()

	@staticmethod
	def _index_path(base: Path, field_name: str) -> Path:
		return base.with_name(f"{base.name}.{field_name}.index")

	def _set_vector_locked(self, doc_id: str, field_name: str, vector) -> None:
		index = self._vectors.get(field_name)
		if index is None:
			raise StoreUnavailable(f"'{field_name}' is not a vector field")
		array = np.asarray(vector, dtype='float32').reshape(-1)
		if array.shape[0] != index.dimension:
			raise StoreUnavailable(
				f"Embedding dimension ({array.shape[0]}) doesn't match expected ({index.dimension})"
			)
		if doc_id in index.rows:
			return  # vectors are written once
		index.add(doc_id, array)

	def _add_suggestion(self, doc: Document, field_name: str) -> None:
		text = str(doc.get(field_name) or '').strip()
		if not text:
			return
		payload = {name: doc.get(name) for name in self.schema.payload_fields}
		# Re-adding the same text replaces the entry in place
		self._suggestions[text.lower()] = Suggestion(text=text, score=1.0, payload=payload)

	def _knn(self, compiled: CompiledQuery, matching: List[str]) -> List[Tuple[str, Optional[float]]]:
		knn = compiled.knn
		index = self._vectors[knn['field']]
		# Without structured filters every vector is a candidate
		candidates = None if not compiled.filters else matching
		k = knn['k']
		if k <= 0:
			return []
		# Widen the FAISS search until the k-th distance is not tied with the
		# next one, so ties at the boundary are also resolved by id
		want = k + 1
		while True:
			hits = sorted(index.search(knn['vector'], want, candidates), key=lambda h: (h[1], h[0]))
			if len(hits) < want or hits[-1][1] > hits[k - 1][1]:
				return hits[:k]
			want *= 2

	def _sorted(self, hits, compiled: CompiledQuery):
		field_name = compiled.sort_by
		ordered = sorted(hits, key=lambda h: h[0])
		return sorted(ordered, key=lambda h: self._docs[h[0]].get(field_name) or 0, reverse=not compiled.ascending)

	def _materialize(self, doc: Document, with_vectors: bool = False) -> Document:
		result = dict(doc)
		if not with_vectors:
			return result
		doc_id = str(doc.get(self.schema.id_field))
		for name, index in self._vectors.items():
			row = index.rows.get(doc_id)
			result[name] = index.index.reconstruct(row).tolist() if row is not None else None
		return result
