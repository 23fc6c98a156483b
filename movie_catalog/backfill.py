"""
Embedding backfill.
Documents are written without vectors; this worker picks up the ids of every
saved batch and fills each vector field from its source text afterwards.
"""

import queue  # thread-safe work queue of document ids
import threading  # background worker
from typing import List, Optional

from loguru import logger  # console logger

from .errors import CatalogError
from .store import CatalogStore


class EmbeddingBackfill:
	"""
	Computes vectors for newly written documents.
	Call start() to run on a daemon thread, or run_pending() to process the
	queue synchronously in the calling thread.
	"""

	def __init__(self, store: CatalogStore, embedder, batch_size: int = 32, poll_interval: float = 0.5):
		self.store = store  # documents are read from and vectors written to here
		self.embedder = embedder  # anything with generate_document_embeddings(texts, batch_size=...)
		self.batch_size = batch_size  # documents encoded per model call
		self.poll_interval = poll_interval  # seconds between queue checks when idle
		self._queue: 'queue.Queue[str]' = queue.Queue()
		self._stop = threading.Event()
		self._thread: Optional[threading.Thread] = None
		self.processed = 0  # vectors written so far
		store.add_write_listener(self.enqueue)

	def enqueue(self, doc_ids: List[str]) -> None:
		for doc_id in doc_ids:
			self._queue.put(doc_id)

	def enqueue_missing(self) -> int:
		"""Queue every stored document still lacking a vector; returns how many were queued."""
		queued = 0
		for spec in self.store.schema.vector_fields():
			if not spec.vectorize_from:
				continue
			missing = self.store.missing_vectors(spec.name)
			self.enqueue(missing)
			queued += len(missing)
		if queued:
			logger.info(f"[Backfill] Queued {queued} stored documents without vectors")
		return queued

	def pending(self) -> int:
		return self._queue.qsize()

	def start(self) -> None:
		if self._thread is not None and self._thread.is_alive():
			return
		self._stop.clear()
		self._thread = threading.Thread(target=self._run, name='embedding-backfill', daemon=True)
		self._thread.start()
		logger.info("[Backfill] Worker started")

	def stop(self, timeout: Optional[float] = None) -> None:
		self._stop.set()
		if self._thread is not None:
			self._thread.join(timeout)
			self._thread = None
		logger.info(f"[Backfill] Worker stopped | processed={self.processed} pending={self.pending()}")

	def run_pending(self) -> int:
		"""Drain the queue in batches; returns the number of vectors written."""
		written = 0
		while True:
			batch = self._take_batch(block=False)
			if not batch:
				return written
			written += self._process(batch)

	def _run(self) -> None:
		while not self._stop.is_set():
			batch = self._take_batch(block=True)
			if not batch:
				continue
			try:
				self._process(batch)
			except Exception:
				# Keep the worker alive; the ids are picked up again at the next startup
				logger.exception(f"[Backfill] Unexpected error on a batch of {len(batch)} documents")

	def _take_batch(self, block: bool) -> List[str]:
		batch: List[str] = []
		try:
			if block:
				batch.append(self._queue.get(timeout=self.poll_interval))
			while len(batch) < self.batch_size:
				batch.append(self._queue.get_nowait())
		except queue.Empty:
			pass
		return batch

	def _process(self, doc_ids: List[str]) -> int:
		doc_ids = list(dict.fromkeys(doc_ids))  # an id can be queued by a write and by enqueue_missing
		written = 0
		for spec in self.store.schema.vector_fields():
			source = spec.vectorize_from
			if not source:
				continue
			docs = [self.store.get(doc_id) for doc_id in doc_ids]
			todo = [d for d in docs if d and d.get(spec.name) is None and str(d.get(source) or '').strip()]
			if not todo:
				continue
			ids = [str(d[self.store.schema.id_field]) for d in todo]
			try:
				vectors = self.embedder.generate_document_embeddings(
					[str(d[source]) for d in todo], batch_size=self.batch_size
				)
				for doc_id, vector in zip(ids, vectors):
					self.store.set_vector(doc_id, spec.name, vector)
					written += 1
			except CatalogError as e:
				# Dropped ids keep no vector and never become KNN candidates
				logger.error(f"[Backfill] Batch of {len(ids)} documents failed for '{spec.name}': {e}")
		self.processed += written
		logger.debug(f"[Backfill] Wrote {written} vectors | pending={self.pending()}")
		return written
