"""
Ingestion pipeline.
Loads the catalog file into the store in fixed-size batches. Two policies
exist and a deployment uses exactly one of them:
- DEDUPLICATE: skip records already in the store or released in/before the cutoff year
- REVERSE_ALL: save every record in reverse file order; callers guard re-runs with is_data_loaded()
"""

import time  # measure load duration
from enum import Enum
from typing import List, Optional

from loguru import logger  # console logger

from .data_loader import DataLoader
from .models import LoadReport, Movie
from .store import CatalogStore


class IngestionPolicy(str, Enum):
	DEDUPLICATE = 'deduplicate'
	REVERSE_ALL = 'reverse_all'


class IngestionPipeline:
	def __init__(
		self,
		store: CatalogStore,
		policy: IngestionPolicy = IngestionPolicy.DEDUPLICATE,
		batch_size: int = 500,
		year_cutoff: int = 1980,
		loader: Optional[DataLoader] = None,
	):
		if batch_size <= 0:
			raise ValueError("batch_size must be positive")
		self.store = store  # destination of the writes
		self.policy = policy  # filtering/ordering rule
		self.batch_size = batch_size  # documents per save call
		self.year_cutoff = year_cutoff  # records with year <= cutoff are skipped (DEDUPLICATE)
		self.loader = loader or DataLoader()  # reads the source file

	def load(self, source_path: str) -> LoadReport:
		"""
		Read the catalog and write the surviving records.
		Source errors (SourceUnavailable, MalformedInput) and store errors propagate;
		a failed batch aborts the remaining ones.
		"""
		movies = self.loader.load_movies_from_json(source_path)
		candidates = self.select(movies)
		logger.info(
			f"[Ingestion] {len(candidates)} of {len(movies)} records to save | policy={self.policy.value} batch={self.batch_size}"
		)

		start = time.perf_counter()
		total_saved = 0
		for offset in range(0, len(candidates), self.batch_size):
			batch = candidates[offset:offset + self.batch_size]
			total_saved += self.store.save_all(movie.to_document() for movie in batch)
			logger.debug(f"[Ingestion] Saved batch {offset // self.batch_size + 1} ({len(batch)} records)")
		elapsed_ms = (time.perf_counter() - start) * 1000

		logger.info(f"[Ingestion] Saved {total_saved} movies in {elapsed_ms:.0f} ms")
		return LoadReport(saved=total_saved, elapsed_ms=elapsed_ms)

	def select(self, movies: List[Movie]) -> List[Movie]:
		"""Apply the policy to the parsed records, returning them in write order."""
		if self.policy == IngestionPolicy.REVERSE_ALL:
			return list(reversed(movies))
		selected = []
		seen = set()  # duplicates inside the file itself
		for movie in movies:
			if movie.year <= self.year_cutoff:
				continue
			if movie.id in seen or self.store.exists(movie.id):
				continue
			seen.add(movie.id)
			selected.append(movie)
		return selected

	def is_data_loaded(self) -> bool:
		return self.store.count() > 0
