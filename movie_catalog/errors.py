"""
Error types for the movie catalog.
Every failure the loader, store, embedder or engine reports is a CatalogError.
"""


class CatalogError(Exception):
	"""Base class for all catalog failures."""


class SourceUnavailable(CatalogError):
	"""The catalog file is missing or cannot be read."""


class MalformedInput(CatalogError):
	"""The catalog file is not a JSON array of movie objects."""


class StoreUnavailable(CatalogError):
	"""A catalog store call failed (connection, schema or query error)."""


class EmbeddingUnavailable(CatalogError):
	"""The embedding model could not turn text into a vector."""


class InvalidSearchRequest(CatalogError):
	"""Search parameters that cannot be turned into a store query."""
