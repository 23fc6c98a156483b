"""
Readiness tracking.
Embeddings are backfilled asynchronously with no completion signal, so the
tracker uses the store's document count as a coarse proxy for "the whole
catalog is in and embeddings have had time to catch up".
"""

from abc import ABC, abstractmethod

from loguru import logger

from .store import CatalogStore

EXPECTED_DOCUMENTS = 10000


class ReadinessTracker(ABC):
	@abstractmethod
	def is_ready(self) -> bool:
		...

	@abstractmethod
	def total_indexed(self) -> int:
		...

	@property
	def expected(self) -> int:
		return EXPECTED_DOCUMENTS


class DocumentCountReadiness(ReadinessTracker):
	"""Ready once count() reaches the threshold; store errors read as not ready."""

	def __init__(self, store: CatalogStore, threshold: int = EXPECTED_DOCUMENTS):
		self.store = store
		self.threshold = threshold

	@property
	def expected(self) -> int:
		return self.threshold

	def is_ready(self) -> bool:
		try:
			indexed = self.store.count()
		except Exception as e:
			logger.error(f"[Readiness] Error checking embedding status: {e}")
			return False
		logger.debug(f"[Readiness] Number of embedded documents: {indexed}")
		return indexed >= self.threshold

	def total_indexed(self) -> int:
		try:
			return self.store.count()
		except Exception as e:
			logger.error(f"[Readiness] Error getting total document count: {e}")
			return 0


class AlwaysReady(ReadinessTracker):
	"""Full-text deployments have no backfill to wait for."""

	def __init__(self, store: CatalogStore):
		self.store = store

	def is_ready(self) -> bool:
		return True

	def total_indexed(self) -> int:
		try:
			return self.store.count()
		except Exception as e:
			logger.error(f"[Readiness] Error getting total document count: {e}")
			return 0
