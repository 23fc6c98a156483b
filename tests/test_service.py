"""
Tests for component wiring and the guarded startup load.
"""

from movie_catalog.config import Settings
from movie_catalog.ingestion import IngestionPolicy
from movie_catalog.readiness import AlwaysReady, DocumentCountReadiness
from movie_catalog.service import build_service

from conftest import SAMPLE_MOVIES, FakeEmbedder


def records():
	return [m.to_document() for m in SAMPLE_MOVIES]


def test_vector_mode_wiring(catalog_file):
	settings = Settings(data_path=catalog_file(records()), snapshot_path='', readiness_threshold=3)
	service = build_service(settings, embedder=FakeEmbedder())
	assert service.mode == 'vector'
	assert service.pipeline.policy == IngestionPolicy.DEDUPLICATE
	assert isinstance(service.readiness, DocumentCountReadiness)
	assert service.readiness.expected == 3
	assert service.backfill is not None

	service.startup(start_backfill=False)
	assert service.store.count() == len(SAMPLE_MOVIES)
	assert service.backfill.run_pending() == len(SAMPLE_MOVIES)

	# already ready: the second startup never reads the source
	service.settings = Settings(data_path='missing.json', snapshot_path='', readiness_threshold=3)
	service.startup(start_backfill=False)
	assert service.store.count() == len(SAMPLE_MOVIES)


def test_fulltext_mode_wiring_and_guarded_reload(catalog_file):
	settings = Settings(mode='fulltext', data_path=catalog_file(records()), snapshot_path='')
	service = build_service(settings)
	assert service.pipeline.policy == IngestionPolicy.REVERSE_ALL
	assert isinstance(service.readiness, AlwaysReady)
	assert service.backfill is None

	service.startup()
	service.startup()
	assert service.store.count() == len(SAMPLE_MOVIES)


def test_service_starts_from_snapshot(loaded_store, tmp_path):
	base = str(tmp_path / 'catalog')
	loaded_store.save_snapshot(base)
	settings = Settings(snapshot_path=base, readiness_threshold=len(SAMPLE_MOVIES), data_path='missing.json')
	service = build_service(settings, embedder=FakeEmbedder())
	assert service.readiness.is_ready()
	outcome = service.engine.search(extract_text='wormhole space', k=1)
	assert outcome.results[0].movie.title == 'Interstellar'


def test_startup_embeds_stored_documents_without_vectors(store, embedder, tmp_path):
	store.save_all(m.to_document() for m in SAMPLE_MOVIES)
	base = str(tmp_path / 'catalog')
	store.save_snapshot(base)
	settings = Settings(snapshot_path=base, readiness_threshold=len(SAMPLE_MOVIES), data_path='missing.json')
	service = build_service(settings, embedder=embedder)
	assert len(service.store.missing_vectors('embeddedExtract')) == len(SAMPLE_MOVIES)

	service.startup(start_backfill=False)
	assert service.backfill.run_pending() == len(SAMPLE_MOVIES)
	assert service.store.missing_vectors('embeddedExtract') == []
	outcome = service.engine.search(extract_text='mob associate', k=3)
	assert outcome.count == 3
	assert outcome.results[0].movie.title == 'Goodfellas'


def test_fresh_load_embeds_each_document_once(catalog_file, embedder):
	settings = Settings(data_path=catalog_file(records()), snapshot_path='', readiness_threshold=100)
	service = build_service(settings, embedder=embedder)
	service.startup(start_backfill=False)
	assert service.backfill.pending() == 2 * len(SAMPLE_MOVIES)
	assert service.backfill.run_pending() == len(SAMPLE_MOVIES)
	assert embedder.calls == 1
