"""
Load the movie catalog and persist a store snapshot.

This script:
1) Creates (or reopens) the catalog store
2) Ingests data/movies.json with the deduplicating loader
3) Computes every missing extract embedding
4) Saves the store snapshot to models/

Usage:
    python -m scripts.load_catalog

After running this once, the API starts from the snapshot and is ready
immediately instead of waiting for the embedding backfill.
"""

import time  # measure step timings

from loguru import logger  # console logging

from movie_catalog.config import configure_logging, get_settings  # configuration
from movie_catalog.embeddings import EmbeddingGenerator  # embedding model wrapper
from movie_catalog.service import build_service  # explicit wiring


def main():
	settings = get_settings()
	configure_logging(settings.log_level)

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("Load Movie Catalog")
	logger.info("=" * 60)

	# 1) Store + components
	logger.info("[1/4] Wiring store and embedding model...")
	embedder = EmbeddingGenerator(settings.embedding_model_name)  # load model
	service = build_service(settings.model_copy(update={'mode': 'vector'}), embedder=embedder)
	logger.info(f"[OK] Store holds {service.store.count()} documents")  # confirm count

	# 2) Ingest
	logger.info(f"[2/4] Ingesting {settings.data_path}...")
	report = service.pipeline.load(settings.data_path)  # errors abort the script
	logger.info(f"[OK] Saved {report.saved} new movies in {report.elapsed_ms:.0f} ms")

	# 3) Embeddings, synchronously
	logger.info("[3/4] Computing embeddings...")
	t0 = time.time()  # start timer
	written = service.backfill.run_pending()  # drain the queue in this thread
	logger.info(f"[OK] {written} embeddings written in {time.time() - t0:.2f}s")

	# 4) Snapshot
	logger.info(f"[4/4] Saving snapshot to {settings.snapshot_path}...")
	service.store.save_snapshot(settings.snapshot_path)  # write .pkl and .index files
	logger.info("[OK] Saved.")  # done

	logger.info(f"All done! {service.store.count()} documents; the API will start from this snapshot.")
	logger.info("=" * 60)


if __name__ == '__main__':
	main()  # invoke loader
