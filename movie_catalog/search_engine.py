"""
Search engine module.
Builds a filter conjunction from the optional request parameters, adds a KNN
clause on the extract embedding when search text is given, runs the query on
the catalog store and returns ordered hits with their distance scores.
"""

import time  # measure query latency
from typing import List, Optional  # type annotations for clarity

# Import project modules for data structures and components
from .errors import InvalidSearchRequest  # rejected parameters
from .models import GenresOutcome, Movie, SearchHit, SearchOutcome  # result containers
from .query import QueryBuilder, describe_query  # store query construction
from .store import CatalogStore  # document + vector store

# Import loguru for console logging
from loguru import logger  # simple structured logger

VECTOR_MODE = 'vector'
FULLTEXT_MODE = 'fulltext'


class HybridSearchEngine:
	"""
	Structured filters (title substring, cast/genres membership, exact year)
	combined with an optional KNN similarity clause.
	In "fulltext" mode the search text is matched as a substring of the extract
	instead of being embedded.
	"""

	def __init__(
		self,
		store: CatalogStore,  # catalog documents
		embedder=None,  # anything with generate_query_embedding(text); required in vector mode
		mode: str = VECTOR_MODE,  # "vector" or "fulltext"
		vector_field: str = 'embeddedExtract',  # KNN target field
	):
		if mode not in (VECTOR_MODE, FULLTEXT_MODE):
			raise ValueError(f"Unknown search mode: {mode}")
		if mode == VECTOR_MODE and embedder is None:
			raise ValueError("Vector search needs an embedder")
		self.store = store
		self.embedder = embedder
		self.mode = mode
		self.vector_field = vector_field

	def search(
		self,
		title: Optional[str] = None,
		extract_text: Optional[str] = None,
		cast: Optional[List[str]] = None,
		year: Optional[int] = None,
		genres: Optional[List[str]] = None,
		k: Optional[int] = None,
	) -> SearchOutcome:
		"""Run a hybrid query; omitted parameters impose no constraint."""
		logger.info(
			f"[Engine] Search | title={title!r} text={extract_text!r} cast={cast} year={year} genres={genres} k={k}"
		)
		builder = (
			QueryBuilder()
			.containing('title', title)
			.having_all('cast', cast)
			.equal_to('year', year)
			.having_all('genres', genres)
		)

		use_knn = self.mode == VECTOR_MODE and extract_text is not None and extract_text.strip() != ''
		if use_knn:
			if k is None or k <= 0:
				raise InvalidSearchRequest("numberOfNearestNeighbors must be a positive integer when text is given")
			# Resolve the text before timing; embedding errors propagate to the caller
			vector = self.embedder.generate_query_embedding(extract_text)
			builder.nearest(self.vector_field, k, vector)
		else:
			if self.mode == FULLTEXT_MODE:
				builder.containing('extract', extract_text)
			builder.sorted_by('year')

		query = builder.build()
		logger.debug(f"[Engine] Store query: {describe_query(query)}")

		start = time.perf_counter()
		rows = self.store.search(query)
		results = [
			SearchHit(movie=Movie.from_document(doc), score=score)
			for doc, score in rows
		]
		elapsed_ms = (time.perf_counter() - start) * 1000

		logger.info(f"[Engine] Search completed in {elapsed_ms:.1f} ms | {len(results)} results")
		return SearchOutcome(results=results, count=len(results), elapsed_ms=elapsed_ms)


class GenreLookup:
	"""Distinct genres across every stored document; recomputed on each call."""

	def __init__(self, store: CatalogStore, field_name: str = 'genres'):
		self.store = store
		self.field_name = field_name

	def all_genres(self) -> GenresOutcome:
		logger.info("[Engine] Fetching all unique genres")
		start = time.perf_counter()
		genres = set(self.store.tag_values(self.field_name))
		elapsed_ms = (time.perf_counter() - start) * 1000
		logger.info(f"[Engine] Fetched {len(genres)} unique genres in {elapsed_ms:.1f} ms")
		return GenresOutcome(genres=genres, elapsed_ms=elapsed_ms)
