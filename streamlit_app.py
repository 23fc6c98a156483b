"""
Streamlit UI for the Movie Catalog Search API.
Talks to the FastAPI server (default http://localhost:8000) through CatalogClient:
title autocomplete, filtered search and semantic search over the movie extracts.

Run API:   uvicorn api:app --reload
Run UI:    streamlit run streamlit_app.py
"""

# HTTP errors raised by the client transport
import requests  # network failures
# Streamlit framework to build a simple interactive UI
import streamlit as st  # UI primitives

from movie_catalog.client import CatalogClient, CatalogNotReady  # API wrapper

# Default URL where the FastAPI server is expected to run locally
DEFAULT_API_URL = "http://localhost:8000"  # default API base URL

# Configure Streamlit page (title and layout width)
st.set_page_config(page_title="Movie Catalog Search", layout="wide")  # wide layout

# Main page title
st.title("🎬 Movie Catalog Search")  # friendly header

# Sidebar contains configuration controls
with st.sidebar:
	st.header("Settings")  # section label
	api_url = st.text_input("API URL", DEFAULT_API_URL)  # where the API lives
	k = st.slider("Nearest neighbors", min_value=1, max_value=50, value=10)  # KNN size for text search

client = CatalogClient(api_url)  # one client per rerun

# Probe the API so the sidebar can show ingestion progress
try:
	health = client.health()  # never gated
	if health.get('ready'):
		st.sidebar.success(f"Catalog ready ({health.get('indexed')} documents, {health.get('mode')} mode)")
	else:
		st.sidebar.warning(f"Indexing: {health.get('indexed')} of {health.get('expected')} documents")
except requests.RequestException as e:
	st.sidebar.error(f"API not reachable: {e}")  # show human-friendly message


# Cache the genre list briefly; it does not change after ingestion
@st.cache_data(ttl=300, show_spinner=False)
def load_genres(url: str):
	try:
		return CatalogClient(url).genres()
	except (CatalogNotReady, requests.RequestException):
		return []  # selector stays empty until the catalog is ready


# Title input with live suggestions
title = st.text_input("Title", placeholder="e.g., Incep")
if title.strip():
	try:
		suggestions = client.suggest(title)
		if suggestions.get('suggestions'):
			st.caption(f"Suggestions ({suggestions.get('autocompleteTime', 0)} ms)")  # timing
			for s in suggestions['suggestions']:
				year = s.get('payload', {}).get('year')
				st.write(f"• {s['text']}" + (f" ({year})" if year else ""))
	except CatalogNotReady as e:
		st.info(str(e))  # progress message from the server
	except requests.RequestException as e:
		st.error(f"Autocomplete failed: {e}")

text = st.text_input("Plot description", placeholder="e.g., a thief who steals secrets through dreams")

# Structured filters in one row
col1, col2, col3 = st.columns([2, 2, 1])
with col1:
	cast_raw = st.text_input("Cast (comma separated)")
with col2:
	genres = st.multiselect("Genres", load_genres(api_url))
with col3:
	year = st.number_input("Year", min_value=0, max_value=2100, value=0, step=1)

if st.button("Search", type="primary"):
	cast = [c.strip() for c in cast_raw.split(',') if c.strip()]
	with st.spinner("Searching..."):
		try:
			payload = client.search(
				title=title,
				text=text,
				cast=cast,
				year=int(year) or None,
				genres=genres,
				number_of_nearest_neighbors=k if text.strip() else None,
			)
			st.success(f"Found {payload['count']} results in {payload['searchTime']} ms")
			st.divider()  # visual separator

			# Render each result as an image + details row
			for i, item in enumerate(payload['movies'], start=1):
				movie = item['movie']  # movie details
				score = item.get('score')  # cosine distance, if any

				c1, c2 = st.columns([1, 4])  # small image column + large text column
				with c1:
					if movie.get('thumbnail'):
						st.image(movie['thumbnail'])  # poster
				with c2:
					st.subheader(f"{i}. {movie['title']} ({movie['year']})")  # title + year
					if score is not None:
						st.caption(f"Distance: {score:.3f}")  # lower is closer
					if movie.get('genres'):
						st.write(f"Genres: {', '.join(movie['genres'])}")  # genres
					if movie.get('cast'):
						st.write(f"Cast: {', '.join(movie['cast'][:5])}")  # actors
					if movie.get('extract'):
						st.write(movie['extract'][:500])  # synopsis
				st.divider()  # separator
		except CatalogNotReady as e:
			st.warning(str(e))  # still indexing
		except requests.RequestException as e:  # network/API errors
			st.error(f"API request failed: {e}")  # show human-friendly message
