"""
Data models for the Movie Catalog.
Defines the movie document plus the result containers returned by the search components.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Optional, Set  # lists, mappings and optional values


@dataclass
class Movie:
	"""
	A single catalog document.
	Field names follow Python conventions; to_document/from_document map them
	to the JSON names used by the catalog file and the HTTP API.
	"""
	id: str  # primary key (the title in the deduplicating loader)
	title: str  # searchable and autocompleted
	year: int  # release year, sortable
	cast: List[str] = field(default_factory=list)  # actor names, tag-indexed
	genres: List[str] = field(default_factory=list)  # genre names, tag-indexed
	extract: str = ''  # synopsis, source text of the embedding
	href: Optional[str] = None  # display metadata, passed through
	thumbnail: Optional[str] = None  # display metadata, passed through
	thumbnail_width: int = 0  # display metadata, passed through
	thumbnail_height: int = 0  # display metadata, passed through
	embedded_extract: Optional[List[float]] = None  # filled by the embedding backfill

	@classmethod
	def from_document(cls, data: Dict[str, Any]) -> 'Movie':
		"""Build a Movie from a JSON object using the catalog field names."""
		return cls(
			id=str(data['id']),
			title=data.get('title') or '',
			year=int(data.get('year') or 0),
			cast=[str(c) for c in (data.get('cast') or [])],
			genres=[str(g) for g in (data.get('genres') or [])],
			extract=data.get('extract') or '',
			href=data.get('href'),
			thumbnail=data.get('thumbnail'),
			thumbnail_width=int(data.get('thumbnailWidth') or 0),
			thumbnail_height=int(data.get('thumbnailHeight') or 0),
			embedded_extract=data.get('embeddedExtract'),
		)

	def to_document(self, include_vector: bool = False) -> Dict[str, Any]:
		"""Serialize to the catalog's JSON field names; the vector is omitted unless asked for."""
		doc = {
			'id': self.id,
			'title': self.title,
			'year': self.year,
			'cast': list(self.cast),
			'genres': list(self.genres),
			'extract': self.extract,
			'href': self.href,
			'thumbnail': self.thumbnail,
			'thumbnailWidth': self.thumbnail_width,
			'thumbnailHeight': self.thumbnail_height,
		}
		if include_vector:
			doc['embeddedExtract'] = self.embedded_extract
		return doc


@dataclass
class SearchHit:
	movie: Movie  # matched movie
	score: Optional[float] = None  # cosine distance when a KNN clause was applied


@dataclass
class SearchOutcome:
	results: List[SearchHit]  # ordered hits
	count: int  # number of hits
	elapsed_ms: float  # filter + sort + materialize time


@dataclass
class Suggestion:
	text: str  # suggested title
	score: float  # store-side suggestion weight
	payload: Dict[str, Any] = field(default_factory=dict)  # hydration data for the client


@dataclass
class AutocompleteOutcome:
	suggestions: List[Suggestion]
	elapsed_ms: float


@dataclass
class GenresOutcome:
	genres: Set[str]
	elapsed_ms: float


@dataclass
class LoadReport:
	saved: int  # documents written
	elapsed_ms: float  # wall-clock time of the batch writes
