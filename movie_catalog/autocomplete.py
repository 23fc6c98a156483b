"""
Title autocomplete.
A pass-through over the store's suggestion dictionary, which the store fills
from the title field as documents are written.
"""

import time

from loguru import logger

from .models import AutocompleteOutcome
from .store import CatalogStore


class AutocompleteIndex:
	def __init__(self, store: CatalogStore, max_results: int = 5):
		self.store = store
		self.max_results = max_results

	def suggest(self, prefix: str) -> AutocompleteOutcome:
		"""Suggestions in the store's own order, each with its payload."""
		start = time.perf_counter()
		suggestions = self.store.suggest(prefix, max_results=self.max_results)
		elapsed_ms = (time.perf_counter() - start) * 1000
		logger.debug(f"[Autocomplete] '{prefix}' -> {len(suggestions)} suggestions in {elapsed_ms:.1f} ms")
		return AutocompleteOutcome(suggestions=suggestions, elapsed_ms=elapsed_ms)
