"""Test package for DocuLink.

Unit tests cover isolated logic and integration tests cover the database
and the HTTP API working together.

Structure:
    - unit/: Individual function and class tests
    - integration/: Repository and end-to-end API tests

Test PDFs are generated in memory and the web is served by
httpx.MockTransport, so no network access is needed.
Leverages pytest with pytest-check for soft assertions.
"""
