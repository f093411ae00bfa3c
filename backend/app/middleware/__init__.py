# Middleware package init
"""
BarcodeSnap Backend — Middleware Package
==========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID: correlation ID for logs and the X-Request-ID header
    - Logging: method, path, status and duration of each request
"""
