"""Test doubles for the text generator and document retriever."""

from typing import Callable

from biotutor.agents.types import Document, Generation


class FakeGenerator:
    """
    Text generator stub that records prompts and answers from a handler.
    """

    def __init__(self, handler: Callable[[str], str] | str = "yes") -> None:
        """
        Initialize the FakeGenerator.

        Args:
            handler (Callable[[str], str] | str, optional): Fixed reply or a function of the prompt. Defaults to "yes".
        """
        self.handler = handler
        self.prompts: list[str] = []

    async def invoke(self, prompt: str) -> Generation:
        self.prompts.append(prompt)
        if callable(self.handler):
            return Generation(content=self.handler(prompt))
        return Generation(content=self.handler)


class FailingGenerator:
    """
    Text generator stub that always raises.
    """

    def __init__(self) -> None:
        self.calls = 0

    async def invoke(self, prompt: str) -> Generation:
        self.calls += 1
        raise RuntimeError("model unavailable")


class FakeRetriever:
    """
    Retriever stub returning fixed documents and recording queries.
    """

    def __init__(self, documents: list[Document] | None = None) -> None:
        self.documents = documents or []
        self.queries: list[str] = []

    async def get_relevant_documents(self, query: str) -> list[Document]:
        self.queries.append(query)
        return list(self.documents)


def tutor_reply(prompt: str) -> str:
    """
    Answer domain checks with "yes" and everything else with a tutor reply.

    Args:
        prompt (str): The prompt sent to the model.

    Returns:
        str: The canned reply.
    """
    if "determine if the following query is related to biology" in prompt:
        return "yes"
    return "Here is your biology answer."
