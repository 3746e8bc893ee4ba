"""
Bibliographic data sources for expert discovery.

Each source is implemented in its own module for maintainability.
All calls are async and return an Outcome instead of raising, so a failing
upstream degrades one pipeline stage rather than the whole search.

- openalex.py: works search and batched author profiles
- semantic_scholar.py: author search and author paper lists
- base.py: pydantic records shared by both
"""
from .openalex import OpenAlexSource
from .semantic_scholar import SemanticScholarSource
from .base import AuthorProfile, ScholarAuthor, ScholarPaper, Work, normalize_doi

__all__ = [
    "OpenAlexSource",
    "SemanticScholarSource",
    "AuthorProfile",
    "ScholarAuthor",
    "ScholarPaper",
    "Work",
    "normalize_doi",
]
