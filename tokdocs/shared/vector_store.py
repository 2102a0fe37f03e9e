"""Vector store for documentation chunks using LanceDB.

Each row is one chunk of a downloaded documentation page with its
embedding and the chunk metadata needed to reassemble the page
(file_path, chunk_index, overlap_chars).
"""

import logging
from pathlib import Path
from typing import Any

import lancedb
import pyarrow as pa

from tokdocs.shared.embedder import DEFAULT_MODEL_NAME, Embedder
from tokdocs.shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Metadata columns stored next to id/text/vector, with their defaults
METADATA_DEFAULTS: dict[str, Any] = {
    "file_path": "",
    "title": "",
    "full_path": "",
    "section": "",
    "chunk_index": 0,
    "total_chunks": 1,
    "overlap_chars": 0,
    "source": "",
    "timestamp": "",
}

_INT_COLUMNS = {"chunk_index", "total_chunks", "overlap_chars"}

_EMPTY_RESULT: dict[str, list[Any]] = {"ids": [], "documents": [], "metadatas": []}


def _chunk_schema(vector_dim: int) -> pa.Schema:
    fields = [
        pa.field("id", pa.string()),
        pa.field("text", pa.string()),
        pa.field("vector", pa.list_(pa.float32(), vector_dim)),
    ]
    fields.extend(
        pa.field(name, pa.int64() if name in _INT_COLUMNS else pa.string()) for name in METADATA_DEFAULTS
    )
    return pa.schema(fields)


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _chunk_record(chunk_id: str, text: str, vector: list[float], metadata: dict[str, Any]) -> dict[str, Any]:
    record: dict[str, Any] = {"id": chunk_id, "text": text, "vector": vector}
    for column, default in METADATA_DEFAULTS.items():
        value = metadata.get(column)
        record[column] = default if value is None else value
    return record


def _columns_to_result(columns: dict[str, list[Any]], rows: list[int]) -> dict[str, Any]:
    """Reshape Arrow columns into parallel ids/documents/metadatas lists."""
    return {
        "ids": [columns["id"][row] for row in rows],
        "documents": [columns["text"][row] for row in rows],
        "metadatas": [{name: columns[name][row] for name in METADATA_DEFAULTS if name in columns} for row in rows],
    }


class VectorStore:
    """LanceDB table of embedded documentation chunks."""

    def __init__(
        self,
        persist_directory: str = "./docs_vectors",
        collection_name: str = "tiktok_docs",
        embedder: Embedder | None = None,
        logger_instance: logging.Logger | None = None,
    ):
        """Open the chunk table, creating the database and table if needed.

        Args:
            persist_directory: Directory holding the LanceDB database
            collection_name: Table name
            embedder: Embedder for chunks and queries (default model if None)
            logger_instance: Optional logger
        """
        self.collection_name = collection_name
        self.logger = logger_instance or logger
        self.embedder = embedder or Embedder(model_name=DEFAULT_MODEL_NAME, logger_instance=self.logger)
        self._vector_dim = self.embedder.get_embedding_dimension()

        self.uri = str(Path(persist_directory).resolve())
        Path(self.uri).mkdir(parents=True, exist_ok=True)
        self.db = lancedb.connect(self.uri)

        try:
            self.table = self.db.open_table(self.collection_name)
        except (FileNotFoundError, ValueError):
            self.table = self._create_table()
        self.logger.info(
            "Chunk table '%s' open at %s", collection_name, self.uri, extra={"collection": collection_name}
        )

    def _create_table(self):
        return self.db.create_table(self.collection_name, schema=_chunk_schema(self._vector_dim), mode="create")

    def add_documents(
        self,
        documents: list[str],
        metadatas: list[dict[str, Any]] | None = None,
        ids: list[str] | None = None,
        embeddings: list[list[float]] | None = None,
    ) -> None:
        """Upsert chunks by id.

        Args:
            documents: Chunk texts
            metadatas: Per-chunk metadata; unknown keys are ignored and
                missing ones take the METADATA_DEFAULTS value
            ids: Chunk ids; ``doc_<n>`` ids are generated when omitted
            embeddings: Precomputed vectors; computed with the embedder when omitted

        Raises:
            ValueError: If metadatas, ids or embeddings differ in length from documents
        """
        if not documents:
            self.logger.warning("add_documents called without chunks")
            return
        for name, values in (("metadatas", metadatas), ("ids", ids), ("embeddings", embeddings)):
            if values and len(values) != len(documents):
                msg = f"Got {len(values)} {name} for {len(documents)} documents"
                raise ValueError(msg)

        if ids is None:
            offset = self.get_document_count()
            ids = [f"doc_{offset + n}" for n in range(len(documents))]
        vectors = embeddings if embeddings is not None else self.embedder.embed(documents)
        metadatas = metadatas or [{}] * len(documents)

        records = [
            _chunk_record(chunk_id, text, vector, metadata)
            for chunk_id, text, vector, metadata in zip(ids, documents, vectors, metadatas, strict=True)
        ]
        self.table.merge_insert("id").when_matched_update_all().when_not_matched_insert_all().execute(records)
        self.logger.info("Stored %d chunks", len(records))

    def search_similar(self, query: str, n_results: int = 5) -> dict[str, Any]:
        """Nearest chunks to a query by cosine distance.

        Returns:
            Dict with ids, documents, metadatas and distances (lower is closer)
        """
        vector = self.embedder.embed_single(query)
        hits = self.table.search(vector).metric("cosine").limit(n_results).to_arrow()
        if hits.num_rows == 0:
            return {**_EMPTY_RESULT, "distances": []}
        columns = hits.to_pydict()
        result = _columns_to_result(columns, list(range(hits.num_rows)))
        result["distances"] = columns.get("_distance", [])
        return result

    def get_documents(
        self,
        ids: list[str] | None = None,
        file_path: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Read stored chunks, optionally filtered by id and/or file path.

        Args:
            ids: Keep only these chunk ids
            file_path: Keep only chunks of this page
            limit: Maximum number of chunks returned

        Returns:
            Dict with ids, documents, metadatas in table order
        """
        snapshot = self.table.to_arrow()
        if snapshot.num_rows == 0:
            return dict(_EMPTY_RESULT)
        columns = snapshot.to_pydict()

        wanted_ids = set(ids) if ids else None
        rows = [
            row
            for row in range(snapshot.num_rows)
            if (wanted_ids is None or columns["id"][row] in wanted_ids)
            and (file_path is None or columns["file_path"][row] == file_path)
        ]
        return _columns_to_result(columns, rows[:limit] if limit is not None else rows)

    def delete_by_file_path(self, file_path: str) -> int:
        """Remove every chunk of one page.

        Returns:
            Number of chunks removed
        """
        count = len(self.get_documents(file_path=file_path)["ids"])
        if count:
            self.table.delete(f"file_path = {_sql_literal(file_path)}")
            self.logger.info("Removed %d chunks of %s", count, file_path, extra={"file_path": file_path})
        return count

    def get_document_count(self) -> int:
        return int(self.table.count_rows())

    def reset(self) -> None:
        """Drop all chunks by recreating the table."""
        self.db.drop_table(self.collection_name)
        self.table = self._create_table()
        self.logger.warning("Chunk table '%s' was reset", self.collection_name)
