"""Integration tests for components working together as a system.

Coverage:
    - Repositories against a temporary SQLite database
    - API endpoints with real HTTP requests through ASGITransport
    - Full upload flow from multipart request to stored file and row

Each test gets its own database file and storage directory. Web pages are
served by httpx.MockTransport.
"""
