"""
Service wiring.
Constructs the store, loader, readiness tracker and query components for one
deployment mode, and runs the startup load.
"""

from dataclasses import dataclass  # container for the wired components
from typing import Optional  # optional collaborators

from loguru import logger  # console logger

from .autocomplete import AutocompleteIndex
from .backfill import EmbeddingBackfill
from .config import Settings
from .errors import CatalogError
from .ingestion import IngestionPipeline, IngestionPolicy
from .readiness import AlwaysReady, DocumentCountReadiness, ReadinessTracker
from .schema import movie_schema
from .search_engine import VECTOR_MODE, GenreLookup, HybridSearchEngine
from .store import CatalogStore, InMemoryCatalogStore


@dataclass
class CatalogService:
	settings: Settings
	store: CatalogStore
	pipeline: IngestionPipeline
	readiness: ReadinessTracker
	engine: HybridSearchEngine
	autocomplete: AutocompleteIndex
	genres: GenreLookup
	backfill: Optional[EmbeddingBackfill] = None

	@property
	def mode(self) -> str:
		return self.settings.mode

	def startup(self, start_backfill: bool = True) -> None:
		"""Load the catalog once, then let the backfill catch up in the background."""
		if self.mode == VECTOR_MODE:
			if self.readiness.is_ready():
				logger.info("[Service] Data already loaded. Skipping data load.")
			else:
				self._load()
			if self.backfill is not None:
				# Snapshot documents and dropped batches have no write event to react to
				self.backfill.enqueue_missing()
				if start_backfill:
					self.backfill.start()
		elif self.pipeline.is_data_loaded():
			logger.info("[Service] Data already loaded. Skipping data load.")
		else:
			self._load()

	def shutdown(self) -> None:
		if self.backfill is not None:
			self.backfill.stop(timeout=5.0)

	def _load(self) -> None:
		try:
			report = self.pipeline.load(self.settings.data_path)
		except CatalogError as e:
			# Not retried; the readiness gate keeps reporting the partial count
			logger.error(f"[Service] Catalog load failed: {e}")
			return
		logger.info(f"[Service] Catalog load finished | saved={report.saved} in {report.elapsed_ms:.0f} ms")


def build_service(
	settings: Settings,
	store: Optional[CatalogStore] = None,
	embedder=None,
) -> CatalogService:
	"""
	Wire every component explicitly.
	- store: defaults to a snapshot from settings.snapshot_path if present, else an empty in-memory store
	- embedder: defaults to the sentence-transformers model in vector mode; unused in full-text mode
	"""
	if store is None:
		if settings.snapshot_path and InMemoryCatalogStore.snapshot_exists(settings.snapshot_path):
			store = InMemoryCatalogStore.load_snapshot(settings.snapshot_path)
		else:
			store = InMemoryCatalogStore()
			store.create_index(movie_schema(settings.embedding_dimension))

	if settings.mode == VECTOR_MODE:
		if embedder is None:
			# Imported here so full-text deployments never load the model
			from .embeddings import EmbeddingGenerator
			embedder = EmbeddingGenerator(settings.embedding_model_name)
		policy = IngestionPolicy.DEDUPLICATE
		readiness: ReadinessTracker = DocumentCountReadiness(store, threshold=settings.readiness_threshold)
		backfill = EmbeddingBackfill(store, embedder, batch_size=settings.embedding_batch_size)
	else:
		policy = IngestionPolicy.REVERSE_ALL
		readiness = AlwaysReady(store)
		backfill = None

	pipeline = IngestionPipeline(
		store,
		policy=policy,
		batch_size=settings.ingest_batch_size,
		year_cutoff=settings.year_cutoff,
	)
	engine = HybridSearchEngine(store, embedder=embedder, mode=settings.mode)
	logger.info(f"[Service] Wired {settings.mode} mode | policy={policy.value} store={type(store).__name__}")
	return CatalogService(
		settings=settings,
		store=store,
		pipeline=pipeline,
		readiness=readiness,
		engine=engine,
		autocomplete=AutocompleteIndex(store, max_results=settings.autocomplete_max),
		genres=GenreLookup(store),
		backfill=backfill,
	)

