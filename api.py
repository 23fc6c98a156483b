"""
FastAPI server exposing the movie catalog search API.
Endpoints:
- GET /search/{q}: title autocomplete suggestions with payloads
- GET /search?title=&text=&cast=&year=&genres=&numberOfNearestNeighbors=: hybrid search
- GET /genres: every distinct genre in the catalog
- GET /health: liveness plus ingestion progress (never gated)

In vector mode the first three answer 503 until the readiness tracker reports
that the catalog is fully indexed. Startup loads the catalog (once) and starts
the embedding backfill.
"""

# Import standard libraries for timing
import time  # measure startup latency
from typing import Any, Dict, List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import FastAPI, Query, Request  # FastAPI primitives
from fastapi.responses import JSONResponse  # error payloads
from pydantic import BaseModel  # response schema definitions

# Import our internal modules for wiring and search
from movie_catalog.config import Settings, configure_logging, get_settings  # configuration
from movie_catalog.errors import EmbeddingUnavailable, InvalidSearchRequest, StoreUnavailable  # mapped to HTTP errors
from movie_catalog.models import Movie  # catalog document
from movie_catalog.service import CatalogService, build_service  # explicit construction
from movie_catalog.store import CatalogStore  # optional injected store

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger


# Pydantic model that describes the shape of a single movie in responses
class MovieOut(BaseModel):
	id: str  # unique id
	title: str  # movie title
	year: int  # release year
	cast: List[str]  # actor names
	genres: List[str]  # genre names
	extract: str  # synopsis
	href: Optional[str] = None  # source page
	thumbnail: Optional[str] = None  # poster image URL
	thumbnailWidth: int = 0  # poster width
	thumbnailHeight: int = 0  # poster height

	@classmethod
	def from_movie(cls, movie: Movie) -> 'MovieOut':
		return cls(**movie.to_document())


# A matched movie with its KNN distance (null without a text query)
class SearchHitOut(BaseModel):
	movie: MovieOut
	score: Optional[float] = None


class SearchResponse(BaseModel):
	movies: List[SearchHitOut]  # ordered hits
	count: int  # number of hits
	searchTime: float  # server-side search time in ms


class SuggestionOut(BaseModel):
	text: str  # suggested title
	score: float  # store-side weight
	payload: Dict[str, Any]  # hydration data


class AutocompleteResponse(BaseModel):
	suggestions: List[SuggestionOut]
	autocompleteTime: float  # ms


class GenresResponse(BaseModel):
	genres: List[str]  # sorted distinct genres
	count: int
	fetchTime: float  # ms


def _not_ready(service: CatalogService) -> JSONResponse:
	"""503 payload telling the client how far ingestion has progressed."""
	indexed = service.readiness.total_indexed()
	expected = service.readiness.expected
	logger.warning(f"[API] Request rejected: {indexed} of {expected} documents indexed")
	return JSONResponse(
		status_code=503,
		content={
			'error': (
				f"Embeddings are still being created ({indexed} of {expected} already created). "
				"This operation takes around two minutes to complete. Please try again later."
			),
			'indexed': indexed,
			'expected': expected,
		},
	)


def create_app(
	settings: Optional[Settings] = None,
	store: Optional[CatalogStore] = None,
	embedder=None,
) -> FastAPI:
	"""
	Build the application. Collaborators are wired at startup, so importing
	this module never loads the embedding model.
	"""
	settings = settings or get_settings()
	app = FastAPI(title="Movie Catalog Search API", version="1.0.0")  # web app
	app.state.service = None  # filled by the startup hook

	def get_service() -> CatalogService:
		if app.state.service is None:
			app.state.service = build_service(settings, store=store, embedder=embedder)
		return app.state.service

	# FastAPI startup hook to initialize the services once
	@app.on_event("startup")
	def startup_event():
		"""Wire components and load the catalog if it is not loaded yet."""
		configure_logging(settings.log_level)
		start = time.time()  # start timer for startup latency
		logger.info(f"[API] Startup: wiring {settings.mode} mode...")  # log intent
		service = get_service()
		if settings.load_on_startup:
			service.startup()
		logger.info(f"[API] Startup complete in {time.time() - start:.2f}s | documents={service.store.count()}")

	@app.on_event("shutdown")
	def shutdown_event():
		if app.state.service is not None:
			app.state.service.shutdown()

	@app.exception_handler(InvalidSearchRequest)
	def invalid_request_handler(request: Request, exc: InvalidSearchRequest):
		return JSONResponse(status_code=400, content={'error': str(exc)})

	@app.exception_handler(StoreUnavailable)
	@app.exception_handler(EmbeddingUnavailable)
	def backend_error_handler(request: Request, exc: Exception):
		logger.error(f"[API] {request.url.path} failed: {exc}")
		return JSONResponse(status_code=500, content={'error': str(exc)})

	# Health endpoint; reports progress even while queries are gated
	@app.get("/health")
	def health():
		service = get_service()
		return {
			"status": "ok",
			"mode": service.mode,
			"ready": service.readiness.is_ready(),
			"indexed": service.readiness.total_indexed(),
			"expected": service.readiness.expected,
		}

	@app.get("/search/{q}", response_model=AutocompleteResponse)
	def autocomplete(q: str):
		"""Title suggestions for a prefix."""
		service = get_service()
		if not service.readiness.is_ready():
			return _not_ready(service)
		outcome = service.autocomplete.suggest(q)
		return AutocompleteResponse(
			suggestions=[SuggestionOut(text=s.text, score=s.score, payload=s.payload) for s in outcome.suggestions],
			autocompleteTime=round(outcome.elapsed_ms, 2),
		)

	@app.get("/search", response_model=SearchResponse)
	def search(
		title: Optional[str] = None,
		text: Optional[str] = None,
		cast: Optional[List[str]] = Query(None),
		year: Optional[int] = None,
		genres: Optional[List[str]] = Query(None),
		numberOfNearestNeighbors: Optional[int] = None,
	):
		"""Hybrid search over the structured filters and the extract embedding."""
		service = get_service()
		if not service.readiness.is_ready():
			return _not_ready(service)
		outcome = service.engine.search(
			title=title,
			extract_text=text,
			cast=cast,
			year=year,
			genres=genres,
			k=numberOfNearestNeighbors,
		)
		logger.info(f"[API] /search served {outcome.count} results in {outcome.elapsed_ms:.2f} ms")
		return SearchResponse(
			movies=[SearchHitOut(movie=MovieOut.from_movie(h.movie), score=h.score) for h in outcome.results],
			count=outcome.count,
			searchTime=round(outcome.elapsed_ms, 2),
		)

	@app.get("/genres", response_model=GenresResponse)
	def all_genres():
		service = get_service()
		if not service.readiness.is_ready():
			return _not_ready(service)
		outcome = service.genres.all_genres()
		return GenresResponse(
			genres=sorted(outcome.genres),
			count=len(outcome.genres),
			fetchTime=round(outcome.elapsed_ms, 2),
		)

	return app


# Application instance for `uvicorn api:app`
app = create_app()
