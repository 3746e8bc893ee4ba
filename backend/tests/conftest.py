"""
Pytest fixtures and configuration for backend tests.

Provides reusable fixtures for testing API endpoints, services, and utilities.
External APIs (OpenAlex, Semantic Scholar) are faked with httpx.MockTransport
and LLMs with AsyncMock, so no test touches the network.
"""
import os
import sys
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

CURRENT_YEAR = 2025


@pytest.fixture(scope="session", autouse=True)
def set_test_environment():
    """Set environment variables for testing."""
    os.environ["OPENAI_API_KEY"] = "test-key-not-real"
    os.environ["REDIS_HOST"] = "localhost"
    os.environ["REDIS_PORT"] = "6379"
    os.environ["API_CONTACT_EMAIL"] = "tests@example.com"
    yield


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_work(
    work_id: str,
    title: str,
    authors: List[dict],
    year: int = CURRENT_YEAR - 1,
    citations: int = 10,
    doi: Optional[str] = None,
    concepts: Optional[List[dict]] = None,
    mesh: Optional[List[str]] = None,
    corresponding_author_ids: Optional[List[str]] = None,
) -> dict:
    """Raw OpenAlex work payload."""
    return {
        "id": f"https://openalex.org/{work_id}",
        "title": title,
        "publication_year": year,
        "cited_by_count": citations,
        "doi": f"https://doi.org/{doi}" if doi else None,
        "authorships": authors,
        "concepts": concepts or [],
        "mesh": [{"descriptor_name": m} for m in (mesh or [])],
        "corresponding_author_ids": corresponding_author_ids or [],
    }


def make_authorship(
    author_id: str,
    name: str,
    position: str = "middle",
    institution: str = "University of Toronto",
    country: Optional[str] = "CA",
    is_corresponding: bool = False,
    orcid: Optional[str] = None,
) -> dict:
    """Raw OpenAlex authorship payload."""
    return {
        "author": {
            "id": f"https://openalex.org/{author_id}",
            "display_name": name,
            "orcid": f"https://orcid.org/{orcid}" if orcid else None,
        },
        "author_position": position,
        "institutions": [{"display_name": institution, "country_code": country}] if institution else [],
        "is_corresponding": is_corresponding,
    }


class FakeResearchAPIs:
    """
    In-process stand-in for OpenAlex and Semantic Scholar.

    Routes requests by path to the data registered on the instance and
    records every request for assertions.
    """

    def __init__(self):
        self.works: List[dict] = []
        self.profiles: Dict[str, dict] = {}
        self.scholar_authors: Dict[str, List[dict]] = {}
        self.scholar_papers: Dict[str, List[dict]] = {}
        self.failing_paths: Dict[str, int] = {}
        self.requests: List[httpx.Request] = []

    def add_profile(self, author_id: str, name: str, works_count: int, cited_by_count: int, i10_index: int = 5):
        self.profiles[author_id] = {
            "id": f"https://openalex.org/{author_id}",
            "display_name": name,
            "works_count": works_count,
            "cited_by_count": cited_by_count,
            "summary_stats": {"2yr_mean_citedness": 2.5, "h_index": 10, "i10_index": i10_index},
        }

    def add_scholar(self, name: str, author_id: str, dois: List[str], paper_count: int = 40, h_index: int = 12):
        self.scholar_authors.setdefault(name, []).append({
            "authorId": author_id,
            "name": name,
            "paperCount": paper_count,
            "citationCount": 1000,
            "hIndex": h_index,
            "url": f"https://www.semanticscholar.org/author/{author_id}",
            "affiliations": [],
        })
        self.scholar_papers[author_id] = [
            {"paperId": f"p{i}", "title": f"Paper {i}", "year": CURRENT_YEAR - 1, "externalIds": {"DOI": doi}}
            for i, doi in enumerate(dois)
        ]

    def fail(self, path_prefix: str, status_code: int = 503):
        self.failing_paths[path_prefix] = status_code

    def recover(self, path_prefix: str):
        self.failing_paths.pop(path_prefix, None)

    def count(self, path_prefix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.startswith(path_prefix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for prefix, status in self.failing_paths.items():
            if path.startswith(prefix):
                return httpx.Response(status)

        if path == "/works":
            return httpx.Response(200, json={"results": self.works})
        if path == "/authors":
            ids = request.url.params["filter"].split(":", 1)[1].split("|")
            return httpx.Response(200, json={"results": [self.profiles[i] for i in ids if i in self.profiles]})
        if path == "/graph/v1/author/search":
            return httpx.Response(200, json={"data": self.scholar_authors.get(request.url.params["query"], [])})
        if path.startswith("/graph/v1/author/") and path.endswith("/papers"):
            author_id = path.split("/")[4]
            return httpx.Response(200, json={"data": self.scholar_papers.get(author_id, [])})
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_llm(content: str = "", error: Optional[Exception] = None) -> MagicMock:
    """
    Chat model double whose ainvoke returns `content` (or raises `error`).

    with_structured_output(schema) sends the same prompt through ainvoke and
    parses the reply with PydanticOutputParser, so malformed replies raise
    OutputParserException as a real structured model would.
    """
    from langchain_core.output_parsers import PydanticOutputParser

    llm = MagicMock()
    if error is not None:
        llm.ainvoke = AsyncMock(side_effect=error)
    else:
        llm.ainvoke = AsyncMock(return_value=MagicMock(content=content))

    def with_structured_output(schema):
        parser = PydanticOutputParser(pydantic_object=schema)

        async def invoke(prompt):
            reply = await llm.ainvoke(prompt)
            return parser.parse(reply.content)

        structured = MagicMock()
        structured.ainvoke = AsyncMock(side_effect=invoke)
        return structured

    llm.with_structured_output = MagicMock(side_effect=with_structured_output)
    return llm


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_apis():
    return FakeResearchAPIs()


@pytest.fixture
def caches(fake_clock):
    from app.services.cache import PipelineCaches

    return PipelineCaches.in_memory(clock=fake_clock)


@pytest.fixture
def openalex_source(fake_apis):
    from app.services.sources.openalex import OpenAlexSource

    return OpenAlexSource(mailto="tests@example.com", retry_delay=0, transport=fake_apis.transport)


@pytest.fixture
def scholar_source(fake_apis):
    from app.services.sources.semantic_scholar import SemanticScholarSource

    return SemanticScholarSource(api_key="", retry_delay=0, transport=fake_apis.transport)


@pytest.fixture
def keyword_reply():
    """Structured keyword reply for a Parkinson's disease search."""
    return (
        '{"primaryKeywords": ["parkinson"], "subfields": ["movement disorders"], '
        '"meshTerms": ["Parkinson Disease"], "synonyms": ["PD"], '
        '"relatedConcepts": ["neurodegeneration"], "exclude": ["pediatric"]}'
    )


@pytest.fixture
def build_pipeline(caches, openalex_source, scholar_source, keyword_reply):
    """Factory for pipelines wired to the fake APIs."""
    from app.services.experts import ExpertDiscoveryPipeline

    def _build(keyword_llm=None, biography_llm=None, pipeline_caches=None):
        return ExpertDiscoveryPipeline(
            caches=pipeline_caches or caches,
            openalex=openalex_source,
            scholar=scholar_source,
            keyword_llm=keyword_llm if keyword_llm is not None else make_llm(keyword_reply),
            biography_llm=biography_llm,
            year_provider=lambda: CURRENT_YEAR,
        )

    return _build


@pytest.fixture
def toronto_corpus(fake_apis):
    """
    Parkinson's corpus with Canadian, US and German authors.

    A1 Ada Lovelace (Toronto, CA): 6 on-topic works, last author on trials
    A2 Ben Carter (Ottawa, CA): 3 on-topic works
    A3 Cleo Park (Boston, US): 4 on-topic works, many citations
    A4 Dan Weiss (Berlin, DE): 2 on-topic works
    """
    ada = ("A1", "Ada Lovelace", "University of Toronto", "CA")
    ben = ("A2", "Ben Carter", "University of Ottawa", "CA")
    cleo = ("A3", "Cleo Park", "Harvard Medical School, Boston", "US")
    dan = ("A4", "Dan Weiss", "Charite Berlin", "DE")

    def authorship(person, position):
        author_id, name, institution, country = person
        return make_authorship(author_id, name, position, institution, country)

    works = []
    for i in range(6):
        works.append(make_work(
            f"W1{i}",
            f"Randomized trial of therapy {i} in Parkinson disease" if i < 3 else f"Parkinson progression study {i}",
            [authorship(ben if i < 3 else cleo, "first"), authorship(ada, "last")],
            year=CURRENT_YEAR - (i % 3),
            citations=50 + i,
            doi=f"10.1000/ada.{i}",
        ))
    works.append(make_work(
        "W20", "Parkinson gait analysis", [authorship(ben, "last")], citations=30, doi="10.1000/ben.0",
    ))
    for i in range(2):
        works.append(make_work(
            f"W3{i}", f"Parkinson biomarkers cohort {i}", [authorship(cleo, "last")],
            citations=900, doi=f"10.1000/cleo.{i}",
        ))
    for i in range(2):
        works.append(make_work(
            f"W4{i}", f"Parkinson imaging {i}", [authorship(dan, "first")], citations=40, doi=f"10.1000/dan.{i}",
        ))
    fake_apis.works = works

    fake_apis.add_profile("A1", "Ada Lovelace", works_count=60, cited_by_count=2400)
    fake_apis.add_profile("A2", "Ben Carter", works_count=25, cited_by_count=600)
    fake_apis.add_profile("A3", "Cleo Park", works_count=120, cited_by_count=9000)
    fake_apis.add_profile("A4", "Dan Weiss", works_count=30, cited_by_count=500)

    fake_apis.add_scholar("Ada Lovelace", "S1", dois=["10.1000/ADA.0", "10.9999/other"])
    fake_apis.add_scholar("Ben Carter", "S2", dois=["10.1000/ben.0"])
    fake_apis.add_scholar("Cleo Park", "S3", dois=["10.1000/cleo.1"])
    fake_apis.add_scholar("Dan Weiss", "S4", dois=["10.1000/dan.0"])
    return fake_apis


@pytest.fixture
def expert_pipeline(build_pipeline, toronto_corpus):
    return build_pipeline()


@pytest.fixture
def test_client(expert_pipeline):
    """Create a test client with the pipeline wired to the fake APIs."""
    # Import here to avoid circular imports
    from app.main import app
    from app.core.dependencies import get_caches, get_pipeline
    from app.core.rate_limit import limiter

    app.dependency_overrides[get_pipeline] = lambda: expert_pipeline
    app.dependency_overrides[get_caches] = lambda: expert_pipeline.caches
    limiter.enabled = False

    with TestClient(app) as client:
        yield client

    limiter.enabled = True
    app.dependency_overrides.clear()
