"""
Embedding generation module.
Turns movie extracts and search text into vectors using sentence-transformers.
"""

# Import NumPy for numerical arrays that store embeddings
import numpy as np  # efficient numeric arrays
# Import typing helpers for clear API contracts
from typing import List  # list types
# Import the SentenceTransformer model to convert text into embeddings
from sentence_transformers import SentenceTransformer  # pre-trained embedding model

from .errors import EmbeddingUnavailable  # failure type surfaced to callers

# Import loguru for consistent console logging (friendlier than print)
from loguru import logger  # console logger


class EmbeddingGenerator:
	"""
	Generates embeddings for catalog documents and queries using sentence-transformers.
	"""

	def __init__(self, model_name: str = 'all-MiniLM-L6-v2'):
		"""
		Load the sentence transformer model.
		- model_name selects which pre-trained model to load; the default produces 384-dim vectors.
		"""
		logger.info(f"[Embeddings] Loading embedding model: {model_name}")  # log model selection
		try:
			# Downloads on first use then caches locally
			self.model = SentenceTransformer(model_name)  # load model weights
		except Exception as e:
			raise EmbeddingUnavailable(f"Could not load embedding model '{model_name}': {e}") from e
		self.model_name = model_name  # save model id
		# Ask the model for the dimensionality of produced vectors (e.g., 384)
		self.embedding_dimension = self.model.get_sentence_embedding_dimension()  # vector size
		logger.info(f"[Embeddings] Model ready. Embedding dimension: {self.embedding_dimension}")  # confirm

	def generate_document_embeddings(
		self,
		texts: List[str],
		batch_size: int = 32,
		show_progress: bool = False
	) -> np.ndarray:
		"""
		Encode a batch of document texts (movie extracts).
		Returns a NumPy array of shape (len(texts), embedding_dimension).
		"""
		if not texts:
			raise ValueError("No texts provided for embedding generation")  # explicit error

		logger.debug(f"[Embeddings] Encoding {len(texts)} documents (batch {batch_size})")  # progress
		try:
			embeddings = self.model.encode(
				texts,  # input documents
				batch_size=batch_size,  # batch size for efficiency
				show_progress_bar=show_progress,  # display progress bar
				convert_to_numpy=True,  # return as NumPy array
				normalize_embeddings=True  # L2-normalize so cosine == dot product
			)
		except Exception as e:
			raise EmbeddingUnavailable(f"Embedding model failed on {len(texts)} documents: {e}") from e
		return embeddings  # return embedding matrix

	def generate_query_embedding(self, query: str) -> np.ndarray:
		"""
		Generate an embedding vector for a single search text.
		Returns a NumPy array of length 'embedding_dimension'.
		"""
		# Validate the query to avoid confusing errors downstream
		if not query or not query.strip():  # empty or whitespace only
			raise ValueError("Query cannot be empty")  # clear feedback

		try:
			embedding = self.model.encode(
				query.strip(),  # trim surrounding spaces
				convert_to_numpy=True,  # NumPy vector
				normalize_embeddings=True  # normalized for cosine similarity
			)
		except Exception as e:
			raise EmbeddingUnavailable(f"Embedding model failed on query: {e}") from e
		return embedding  # single vector

	def get_embedding_dimension(self) -> int:
		"""
		Return the dimensionality of the embedding vectors produced by the model.
		"""
		return self.embedding_dimension  # cached value
