"""
Tests for the HTTP API: readiness gating, search, autocomplete and genres.
"""

import pytest
from fastapi.testclient import TestClient

from api import create_app
from movie_catalog.config import Settings

from conftest import SAMPLE_MOVIES, FakeEmbedder, make_movie


def settings(**overrides):
	values = {'load_on_startup': False, 'snapshot_path': '', 'log_level': 'WARNING'}
	values.update(overrides)
	return Settings(**values)


@pytest.fixture
def client(loaded_store):
	app = create_app(settings(readiness_threshold=len(SAMPLE_MOVIES)), store=loaded_store, embedder=FakeEmbedder())
	with TestClient(app) as c:
		yield c


def test_queries_are_gated_until_catalog_is_indexed(store):
	app = create_app(settings(), store=store, embedder=FakeEmbedder())
	with TestClient(app) as c:
		response = c.get('/search', params={'year': 1990})
		assert response.status_code == 503
		body = response.json()
		assert '0 of 10000' in body['error']
		assert body['indexed'] == 0 and body['expected'] == 10000
		assert c.get('/genres').status_code == 503
		assert c.get('/search/Inc').status_code == 503

		store.save_all(make_movie(f'Filler {i}', 2000).to_document() for i in range(9999))
		store.save_all([make_movie('Goodfellas', 1990).to_document()])

		response = c.get('/search', params={'year': 1990})
		assert response.status_code == 200
		assert [hit['movie']['title'] for hit in response.json()['movies']] == ['Goodfellas']


def test_health_is_never_gated(store):
	app = create_app(settings(), store=store, embedder=FakeEmbedder())
	with TestClient(app) as c:
		body = c.get('/health').json()
		assert body['status'] == 'ok'
		assert body['mode'] == 'vector'
		assert body['ready'] is False
		assert body['expected'] == 10000


def test_autocomplete_returns_suggestions_with_payload(client):
	response = client.get('/search/Incep')
	assert response.status_code == 200
	body = response.json()
	assert body['suggestions'][0]['text'] == 'Inception'
	assert body['suggestions'][0]['payload']['id'] == 'Inception'
	assert body['suggestions'][0]['payload']['year'] == 2010
	assert 'autocompleteTime' in body


def test_search_with_filters(client):
	response = client.get('/search', params=[('cast', 'Leonardo DiCaprio'), ('genres', 'Crime'), ('genres', 'Drama')])
	body = response.json()
	assert response.status_code == 200
	assert body['count'] == 1
	hit = body['movies'][0]
	assert hit['movie']['title'] == 'The Departed'
	assert hit['movie']['cast'] == ['Leonardo DiCaprio', 'Matt Damon']
	assert hit['score'] is None
	assert body['searchTime'] >= 0


def test_text_search_returns_nearest_first(client):
	response = client.get('/search', params={'text': 'wormhole space travel', 'numberOfNearestNeighbors': 2})
	body = response.json()
	assert response.status_code == 200
	assert body['count'] == 2
	assert body['movies'][0]['movie']['title'] == 'Interstellar'
	assert body['movies'][0]['score'] <= body['movies'][1]['score']


def test_text_without_neighbour_count_is_bad_request(client):
	response = client.get('/search', params={'text': 'dreams'})
	assert response.status_code == 400
	assert 'numberOfNearestNeighbors' in response.json()['error']


def test_genres_are_sorted_and_distinct(client):
	body = client.get('/genres').json()
	assert body['genres'] == ['Action', 'Crime', 'Drama', 'Horror', 'Science Fiction']
	assert body['count'] == 5


def test_embedding_failure_is_server_error(loaded_store):
	app = create_app(settings(readiness_threshold=1), store=loaded_store, embedder=FakeEmbedder(fail=True))
	with TestClient(app) as c:
		response = c.get('/search', params={'text': 'dreams', 'numberOfNearestNeighbors': 3})
		assert response.status_code == 500
		assert 'model offline' in response.json()['error']


def test_fulltext_mode_loads_on_startup_without_gate(catalog_file):
	path = catalog_file([
		{'title': 'Metropolis', 'year': 1927, 'extract': 'A robot in a future city', 'genres': ['Drama']},
		{'title': 'Blade Runner', 'year': 1982, 'extract': 'A hunter of replicants in a future city', 'genres': ['Science Fiction']},
	])
	app = create_app(settings(mode='fulltext', data_path=path, load_on_startup=True))
	with TestClient(app) as c:
		body = c.get('/search', params={'text': 'future city'}).json()
		# reverse-all policy keeps pre-cutoff records
		assert [hit['movie']['title'] for hit in body['movies']] == ['Metropolis', 'Blade Runner']
		assert c.get('/health').json()['indexed'] == 2
		assert c.get('/genres').json()['genres'] == ['Drama', 'Science Fiction']


def test_vector_startup_load_failure_keeps_serving(store, tmp_path):
	app = create_app(
		settings(data_path=str(tmp_path / 'missing.json'), load_on_startup=True),
		store=store,
		embedder=FakeEmbedder(),
	)
	with TestClient(app) as c:
		assert c.get('/health').json()['indexed'] == 0
		assert c.get('/search').status_code == 503
