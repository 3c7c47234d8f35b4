"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - models/: Document source pairing, business rules, API schemas
    - parsing/: Sanitizer, PDF extraction and web scraping
    - services/: Document orchestration with in-memory fakes
    - config: Environment driven settings

Uses fakes for repositories and extractors when needed. Leverages
pytest-check for multiple assertions per test.
"""
