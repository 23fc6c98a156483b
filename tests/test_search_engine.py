"""
Tests for hybrid search, genre lookup and title autocomplete.
"""

import pytest

from movie_catalog.autocomplete import AutocompleteIndex
from movie_catalog.errors import EmbeddingUnavailable, InvalidSearchRequest
from movie_catalog.search_engine import FULLTEXT_MODE, GenreLookup, HybridSearchEngine

from conftest import SAMPLE_MOVIES, FakeEmbedder, make_movie


def titles(outcome):
	return [hit.movie.title for hit in outcome.results]


@pytest.fixture
def engine(loaded_store, embedder):
	return HybridSearchEngine(loaded_store, embedder)


def test_filters_form_a_conjunction(engine):
	outcome = engine.search(cast=['Leonardo DiCaprio'], genres=['Drama'])
	assert titles(outcome) == ['The Departed']
	assert outcome.count == 1
	assert outcome.results[0].score is None

	outcome = engine.search(title='in', year=2010)
	assert titles(outcome) == ['Inception']


def test_no_parameters_returns_everything_by_year(engine):
	outcome = engine.search()
	assert [hit.movie.year for hit in outcome.results] == sorted(m.year for m in SAMPLE_MOVIES)
	assert outcome.count == len(SAMPLE_MOVIES)
	assert outcome.elapsed_ms >= 0


def test_text_search_orders_by_ascending_distance(engine):
	outcome = engine.search(extract_text='wormhole space travel', k=3)
	assert outcome.count == 3
	assert titles(outcome)[0] == 'Interstellar'
	scores = [hit.score for hit in outcome.results]
	assert all(score is not None for score in scores)
	assert scores == sorted(scores)


def test_text_search_respects_filters(engine):
	outcome = engine.search(extract_text='dreams heist', genres=['Crime'], k=10)
	assert sorted(titles(outcome)) == ['Goodfellas', 'The Departed']


def test_k_smaller_than_filtered_set_returns_nearest_match(engine):
	text = 'mob associate thief secrets dreams heist'
	# Inception is the overall nearest but is not a crime movie
	assert titles(engine.search(extract_text=text, k=1)) == ['Inception']
	outcome = engine.search(extract_text=text, genres=['Crime'], k=1)
	assert titles(outcome) == ['Goodfellas']
	assert outcome.count == 1


def test_wormhole_text_within_drama_finds_interstellar(engine):
	outcome = engine.search(extract_text='wormhole space travel', genres=['Drama'], k=1)
	assert titles(outcome) == ['Interstellar']


@pytest.mark.parametrize('k', [None, 0, -3])
def test_text_without_positive_k_is_rejected(engine, k):
	with pytest.raises(InvalidSearchRequest):
		engine.search(extract_text='dreams', k=k)


def test_blank_text_is_treated_as_absent(engine):
	outcome = engine.search(extract_text='   ')
	assert outcome.count == len(SAMPLE_MOVIES)
	assert all(hit.score is None for hit in outcome.results)


def test_embedding_failure_propagates(loaded_store):
	engine = HybridSearchEngine(loaded_store, FakeEmbedder(fail=True))
	with pytest.raises(EmbeddingUnavailable):
		engine.search(extract_text='dreams', k=2)


def test_fulltext_mode_matches_extract_substring(loaded_store):
	engine = HybridSearchEngine(loaded_store, mode=FULLTEXT_MODE)
	outcome = engine.search(extract_text='DREAMS', k=1)
	assert titles(outcome) == ['Dreamcatcher', 'Inception']
	assert all(hit.score is None for hit in outcome.results)


def test_engine_construction_is_validated(store, embedder):
	with pytest.raises(ValueError):
		HybridSearchEngine(store)
	with pytest.raises(ValueError):
		HybridSearchEngine(store, embedder, mode='semantic')


def test_genres_are_distinct(loaded_store):
	outcome = GenreLookup(loaded_store).all_genres()
	assert outcome.genres == {'Science Fiction', 'Action', 'Drama', 'Crime', 'Horror'}


def test_genres_on_empty_store(store):
	assert GenreLookup(store).all_genres().genres == set()


def test_autocomplete_limits_and_payload(store):
	store.save_all(make_movie(f'Star {i}', 2000 + i, extract=f'plot {i}').to_document() for i in range(8))
	outcome = AutocompleteIndex(store, max_results=5).suggest('star')
	assert len(outcome.suggestions) == 5
	first = outcome.suggestions[0]
	assert first.text.startswith('Star')
	assert set(first.payload) == {'id', 'year', 'extract', 'thumbnail'}
	assert AutocompleteIndex(store).suggest('moon').suggestions == []
