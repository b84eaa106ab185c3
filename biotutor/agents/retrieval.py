"""Retrieval adapters that bridge document stores into the turn pipeline."""

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from loguru import logger

from biotutor.agents.types import Document, DocumentRetriever

if TYPE_CHECKING:
    from llama_index.core.base.base_retriever import BaseRetriever


async def retrieve_documents(
    retriever: DocumentRetriever | None, query: str
) -> list[Document]:
    """
    Fetch documents, treating every failure as "no documents".

    Args:
        retriever (DocumentRetriever | None): The retriever to query.
        query (str): The effective query.

    Returns:
        list[Document]: The retrieved documents, or an empty list.
    """
    if retriever is None:
        return []
    if not query or not query.strip():
        logger.warning("Empty query received for retrieval")
        return []
    try:
        docs = await retriever.get_relevant_documents(query)
    except Exception as e:
        logger.error("Error during retrieval for '{}': {}", query[:100], e)
        return []
    docs = list(docs or [])
    logger.info("Retrieved {} documents", len(docs))
    return docs


class LlamaIndexRetriever:
    """
    Adapter exposing a llama-index retriever as a DocumentRetriever.
    """

    def __init__(self, retriever: "BaseRetriever") -> None:
        """
        Initialize the LlamaIndexRetriever.

        Args:
            retriever (BaseRetriever): Any llama-index retriever (e.g. `index.as_retriever()`).
        """
        self.retriever = retriever

    async def get_relevant_documents(self, query: str) -> list[Document]:
        """
        Retrieve nodes and convert them into documents.

        Args:
            query (str): The query string.

        Returns:
            list[Document]: One document per retrieved node, with its score in the metadata.
        """
        nodes = await self.retriever.aretrieve(query)
        documents: list[Document] = []
        for item in nodes:
            metadata = dict(item.node.metadata or {})
            if item.score is not None:
                metadata["score"] = item.score
            documents.append(
                Document(page_content=item.node.get_content(), metadata=metadata)
            )
        return documents


def load_directory_retriever(path: Path) -> LlamaIndexRetriever:
    """
    Build a retriever over every document in a directory.

    Uses a llama-index summary index, which needs neither an embedding model
    nor an LLM. Every chunk is returned, so keep the directory small.

    Args:
        path (Path): Directory of documents readable by `SimpleDirectoryReader`.

    Returns:
        LlamaIndexRetriever: The wrapped retriever.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    from llama_index.core import SimpleDirectoryReader, SummaryIndex

    if not path.is_dir():
        logger.error("FileNotFoundError: Document directory '{}' not found.", path)
        raise FileNotFoundError(f"Document directory '{path}' not found.")

    documents = SimpleDirectoryReader(str(path), recursive=True).load_data()
    logger.info("Loaded {} documents from {}", len(documents), path)
    index = SummaryIndex.from_documents(documents)
    return LlamaIndexRetriever(index.as_retriever())


class StaticRetriever:
    """
    In-memory retriever ranking fixed documents by query-word overlap.
    """

    def __init__(self, documents: Iterable[Document], top_k: int = 4) -> None:
        self.documents = list(documents)
        self.top_k = top_k

    async def get_relevant_documents(self, query: str) -> list[Document]:
        words = {w for w in query.lower().split() if len(w) > 2}
        scored = []
        for doc in self.documents:
            text = doc.page_content.lower()
            hits = sum(1 for w in words if w in text)
            if hits:
                scored.append((hits, doc))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [doc for _, doc in scored[: self.top_k]]
