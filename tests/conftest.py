import pytest

from biotutor.agents.types import Document
from tests.fakes import FakeGenerator, FakeRetriever, tutor_reply


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator(tutor_reply)


@pytest.fixture
def content_retriever() -> FakeRetriever:
    return FakeRetriever(
        [Document(page_content="Photosynthesis converts light energy into chemical energy.")]
    )


@pytest.fixture
def exam_retriever() -> FakeRetriever:
    return FakeRetriever(
        [Document(page_content="Q1. Describe the light-dependent reaction. [4 marks]")]
    )
