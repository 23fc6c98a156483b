"""
Shared fixtures for the catalog tests.
FakeEmbedder stands in for the sentence-transformers model: a hashed
bag-of-words vector, so texts sharing words are close under cosine distance.
"""

import json
import re
import sys
import zlib
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
	sys.path.insert(0, str(ROOT))

from movie_catalog.errors import EmbeddingUnavailable
from movie_catalog.models import Movie
from movie_catalog.schema import movie_schema
from movie_catalog.store import InMemoryCatalogStore

DIMENSION = 384


class FakeEmbedder:
	def __init__(self, dimension: int = DIMENSION, fail: bool = False):
		self.dimension = dimension
		self.fail = fail
		self.calls = 0

	def _vector(self, text: str) -> np.ndarray:
		vec = np.zeros(self.dimension, dtype='float32')
		for token in re.findall(r'[a-z0-9]+', text.lower()):
			vec[zlib.crc32(token.encode('utf-8')) % self.dimension] += 1.0
		norm = np.linalg.norm(vec)
		return vec / norm if norm else vec

	def generate_document_embeddings(self, texts, batch_size=32, show_progress=False):
		self.calls += 1
		if self.fail:
			raise EmbeddingUnavailable("model offline")
		return np.stack([self._vector(t) for t in texts])

	def generate_query_embedding(self, query):
		self.calls += 1
		if self.fail:
			raise EmbeddingUnavailable("model offline")
		return self._vector(query)

	def get_embedding_dimension(self):
		return self.dimension


def make_movie(title, year, cast=None, genres=None, extract='', **extra):
	return Movie(id=title, title=title, year=year, cast=cast or [], genres=genres or [], extract=extract, **extra)


SAMPLE_MOVIES = [
	make_movie('Inception', 2010, ['Leonardo DiCaprio', 'Elliot Page'], ['Science Fiction', 'Action'],
		'A thief steals secrets by entering dreams during a heist', thumbnail='inception.jpg'),
	make_movie('Interstellar', 2014, ['Matthew McConaughey', 'Anne Hathaway'], ['Science Fiction', 'Drama'],
		'Astronauts travel through a wormhole to save humanity in space'),
	make_movie('The Departed', 2006, ['Leonardo DiCaprio', 'Matt Damon'], ['Crime', 'Drama'],
		'An undercover cop and a mole in the police chase each other'),
	make_movie('Goodfellas', 1990, ['Robert De Niro', 'Ray Liotta'], ['Crime', 'Drama'],
		'The rise and fall of a mob associate'),
	make_movie('Dreamcatcher', 2003, ['Morgan Freeman'], ['Horror'],
		'Friends with psychic dreams fight an alien in the woods'),
]


@pytest.fixture
def embedder():
	return FakeEmbedder()


@pytest.fixture
def store():
	s = InMemoryCatalogStore()
	s.create_index(movie_schema(DIMENSION))
	return s


@pytest.fixture
def loaded_store(store, embedder):
	"""Store holding SAMPLE_MOVIES with every extract embedded."""
	store.save_all(m.to_document() for m in SAMPLE_MOVIES)
	for m in SAMPLE_MOVIES:
		store.set_vector(m.id, 'embeddedExtract', embedder._vector(m.extract))
	return store


@pytest.fixture
def catalog_file(tmp_path):
	"""Write a list of raw catalog objects and return the file path."""
	def write(records, name='movies.json'):
		path = tmp_path / name
		path.write_text(json.dumps(records), encoding='utf-8')
		return str(path)
	return write
