"""
Tests for readiness tracking.
"""

from movie_catalog.errors import StoreUnavailable
from movie_catalog.readiness import EXPECTED_DOCUMENTS, AlwaysReady, DocumentCountReadiness

from conftest import make_movie


class BrokenStore:
	def count(self):
		raise StoreUnavailable("store unreachable")


def test_ready_once_threshold_reached(store):
	readiness = DocumentCountReadiness(store, threshold=3)
	assert readiness.expected == 3
	store.save_all(make_movie(f'Movie {i}', 2000).to_document() for i in range(2))
	assert not readiness.is_ready()
	assert readiness.total_indexed() == 2
	store.save_all([make_movie('Movie 2', 2000).to_document()])
	assert readiness.is_ready()


def test_default_threshold(store):
	readiness = DocumentCountReadiness(store)
	assert readiness.expected == EXPECTED_DOCUMENTS == 10000
	assert not readiness.is_ready()


def test_store_errors_read_as_not_ready():
	readiness = DocumentCountReadiness(BrokenStore())
	assert readiness.is_ready() is False
	assert readiness.total_indexed() == 0


def test_always_ready(store):
	readiness = AlwaysReady(store)
	assert readiness.is_ready()
	assert readiness.total_indexed() == 0
	assert AlwaysReady(BrokenStore()).total_indexed() == 0
