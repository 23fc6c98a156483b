"""
Central configuration for the movie catalog service.
Values come from environment variables prefixed with MOVIE_CATALOG_ (or a .env file).
"""

import sys
from functools import lru_cache
from typing import Literal

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_prefix='MOVIE_CATALOG_', env_file='.env', extra='ignore')

	# Source data
	data_path: str = 'data/movies.json'
	# "vector": dedup loader, readiness gate, KNN search on the extract
	# "fulltext": reverse-all loader, no gate, substring search on the extract
	mode: Literal['vector', 'fulltext'] = 'vector'

	# Embeddings
	embedding_model_name: str = 'all-MiniLM-L6-v2'
	embedding_dimension: int = 384
	embedding_batch_size: int = 32

	# Ingestion
	ingest_batch_size: int = 500
	year_cutoff: int = 1980
	load_on_startup: bool = True
	# Base path of a store snapshot written by scripts/load_catalog.py; empty disables it
	snapshot_path: str = 'models/catalog'

	# Query serving
	readiness_threshold: int = 10000
	autocomplete_max: int = 5

	log_level: str = 'INFO'


@lru_cache
def get_settings() -> Settings:
	return Settings()


def configure_logging(level: str = 'INFO') -> None:
	"""Replace loguru's default sink with one at the configured level."""
	logger.remove()
	logger.add(sys.stderr, level=level.upper())
