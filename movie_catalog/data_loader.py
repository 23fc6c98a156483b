"""
Data loading module.
Reads the movie catalog (a JSON array of movie objects) into Movie records.
"""

# Standard libs for JSON parsing, unique keys, typing, and paths
import json  # parse the catalog array
import hashlib  # stable keys for untitled records
from typing import Any, Dict, List  # type hints
from pathlib import Path  # filesystem-safe paths

# Import our Movie data class used across the project
from .models import Movie  # structured movie record
from .errors import MalformedInput, SourceUnavailable  # loader failures

# Console logging
from loguru import logger  # console logger


class DataLoader:
	"""
	Reads and normalizes catalog records.
	"""

	def load_movies_from_json(self, filepath: str) -> List[Movie]:
		"""
		Load every movie from a JSON file holding one array of objects.
		Raises SourceUnavailable if the file cannot be read and MalformedInput
		if it is not a JSON array of movie objects.
		"""
		filepath = Path(filepath)  # normalize path
		logger.info(f"[DataLoader] Loading movies from {filepath}...")  # log action

		try:
			with open(filepath, 'r', encoding='utf-8') as f:
				raw = json.load(f)  # whole catalog at once; it is bounded
		except OSError as e:
			raise SourceUnavailable(f"Movie data file not readable: {filepath} ({e})") from e
		except (json.JSONDecodeError, UnicodeDecodeError) as e:
			raise MalformedInput(f"Movie data file is not valid JSON: {filepath} ({e})") from e

		if not isinstance(raw, list):
			raise MalformedInput(f"Expected a JSON array of movies in {filepath}, got {type(raw).__name__}")

		movies = []  # accumulator for parsed Movie objects
		for position, data in enumerate(raw):
			if not isinstance(data, dict):
				raise MalformedInput(f"Entry {position} in {filepath} is not a JSON object")
			try:
				movies.append(self._parse_movie_data(data))  # convert dict -> Movie
			except (TypeError, ValueError) as e:
				raise MalformedInput(f"Entry {position} in {filepath} has invalid fields: {e}") from e

		logger.info(f"[DataLoader] Successfully loaded {len(movies)} movies.")  # summary
		return movies  # return list

	def _parse_movie_data(self, data: Dict[str, Any]) -> Movie:
		"""
		Convert a raw catalog object into a Movie.
		The title doubles as the id so re-loading the same record hits the same key.
		"""
		title = (data.get('title') or '').strip()  # clean title
		return Movie(
			id=title or self._content_key(data),  # derived key only when there is no title
			title=title,
			year=int(data.get('year') or 0),  # numeric
			cast=self._parse_list(data.get('cast')),  # actor names
			genres=self._parse_list(data.get('genres')),  # genre names
			extract=data.get('extract') or '',  # synopsis
			href=data.get('href'),  # passed through
			thumbnail=data.get('thumbnail'),  # passed through
			thumbnail_width=int(data.get('thumbnailWidth') or 0),  # passed through
			thumbnail_height=int(data.get('thumbnailHeight') or 0),  # passed through
		)

	def _content_key(self, data: Dict[str, Any]) -> str:
		"""
		Key for a record without a title: SHA-1 of its canonical JSON, so the
		same record maps to the same id on every load.
		"""
		canonical = json.dumps(data, sort_keys=True, ensure_ascii=False, separators=(',', ':'))
		return hashlib.sha1(canonical.encode('utf-8')).hexdigest()

	def _parse_list(self, value) -> List[str]:
		"""
		Normalize a value that may be None or a list into a list of clean strings.
		"""
		if value is None:  # missing field
			return []  # treat as empty list
		if isinstance(value, list):  # the catalog format
			return [str(item).strip() for item in value if item]  # clean each
		raise TypeError(f"expected a list, got {type(value).__name__}")
