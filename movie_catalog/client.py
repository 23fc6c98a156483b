"""
HTTP client for the catalog search API.
Used by the Streamlit UI; any object with a requests-style get() can be
passed as the session (a requests.Session, or FastAPI's TestClient in tests).
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote  # path-safe prefixes

import requests  # default HTTP transport
from loguru import logger


class CatalogNotReady(Exception):
	"""The service answered 503 because embeddings are still being created."""

	def __init__(self, message: str, indexed: int = 0, expected: int = 0):
		super().__init__(message)
		self.indexed = indexed
		self.expected = expected


class CatalogClient:
	def __init__(self, base_url: str = "http://localhost:8000", session=None, timeout: float = 10.0):
		self.base_url = base_url.rstrip('/')
		self.session = session or requests.Session()
		self.timeout = timeout

	def health(self) -> Dict[str, Any]:
		return self._get('/health')

	def suggest(self, prefix: str) -> Dict[str, Any]:
		"""Autocomplete suggestions; {'suggestions': [...], 'autocompleteTime': ms}."""
		if not prefix or not prefix.strip():
			return {'suggestions': [], 'autocompleteTime': 0}
		return self._get(f"/search/{quote(prefix.strip(), safe='')}")

	def search(
		self,
		title: Optional[str] = None,
		text: Optional[str] = None,
		cast: Optional[List[str]] = None,
		year: Optional[int] = None,
		genres: Optional[List[str]] = None,
		number_of_nearest_neighbors: Optional[int] = None,
	) -> Dict[str, Any]:
		"""Hybrid search; {'movies': [{'movie': ..., 'score': ...}], 'count': n, 'searchTime': ms}."""
		params = []  # list of pairs so cast/genres repeat
		if title and title.strip():
			params.append(('title', title.strip()))
		if text and text.strip():
			params.append(('text', text.strip()))
		for actor in cast or []:
			params.append(('cast', actor.strip()))
		if year:
			params.append(('year', int(year)))
		for genre in genres or []:
			params.append(('genres', genre.strip()))
		if number_of_nearest_neighbors:
			params.append(('numberOfNearestNeighbors', int(number_of_nearest_neighbors)))
		return self._get('/search', params=params)

	def genres(self) -> List[str]:
		return list(self._get('/genres').get('genres', []))

	def _get(self, path: str, params=None) -> Dict[str, Any]:
		url = f"{self.base_url}{path}"
		logger.debug(f"[Client] GET {url} params={params}")
		response = self.session.get(url, params=params, timeout=self.timeout)
		if response.status_code == 503:
			body = response.json()
			raise CatalogNotReady(body.get('error', 'Service not ready'), body.get('indexed', 0), body.get('expected', 0))
		response.raise_for_status()
		return response.json()
