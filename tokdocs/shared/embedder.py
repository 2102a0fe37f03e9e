"""Sentence embeddings for documentation chunks and search queries.

Chunks and queries go through the same model so that their vectors are
comparable; vectors are unit-normalized by default, which makes the cosine
distance used by the vector store well behaved.
"""

import logging
from typing import Any

from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "all-MiniLM-L6-v2"
DEFAULT_BATCH_SIZE = 32


class Embedder:
    """Thin wrapper around a sentence-transformers model."""

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        device: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        logger_instance: logging.Logger | None = None,
    ):
        """Load the model.

        Args:
            model_name: sentence-transformers model id
            device: ``"cpu"``, ``"cuda"``, or None to let the library pick
            batch_size: Texts encoded per forward pass
            logger_instance: Optional logger
        """
        self.model_name = model_name
        self.batch_size = batch_size
        self.logger = logger_instance or logger

        self.model = SentenceTransformer(model_name, device=device)
        self.logger.info("Embedding model %s ready on %s", model_name, self.model.device)

    def embed(
        self,
        texts: list[str],
        show_progress: bool = False,
        normalize: bool = True,
    ) -> list[list[float]]:
        """Encode chunk texts.

        Args:
            texts: Non-empty texts
            show_progress: Show the library's progress bar
            normalize: Scale vectors to unit length

        Returns:
            One vector per text, as plain float lists

        Raises:
            ValueError: For an empty list, or blank entries (their positions
                are listed in the message)
        """
        if not texts:
            msg = "Nothing to embed: text list is empty"
            raise ValueError(msg)

        blank = [pos for pos, text in enumerate(texts) if not isinstance(text, str) or not text.strip()]
        if blank:
            msg = f"Nothing to embed at positions {blank}: texts are blank"
            raise ValueError(msg)

        vectors = self.model.encode(
            texts,
            batch_size=self.batch_size,
            show_progress_bar=show_progress,
            normalize_embeddings=normalize,
            convert_to_numpy=True,
        ).tolist()
        self.logger.debug("Embedded %d texts with %s", len(vectors), self.model_name)
        return vectors

    def embed_single(self, text: str, normalize: bool = True) -> list[float]:
        """Encode one text, typically a search query."""
        if not text:
            msg = "Nothing to embed: text is empty"
            raise ValueError(msg)
        return self.embed([text], normalize=normalize)[0]

    def get_embedding_dimension(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def get_model_info(self) -> dict[str, Any]:
        return {
            "model_name": self.model_name,
            "embedding_dimension": self.get_embedding_dimension(),
            "max_seq_length": self.model.max_seq_length,
            "device": str(self.model.device),
            "batch_size": self.batch_size,
        }
