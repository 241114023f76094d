# Middleware package init
"""
Vida Mais Backend — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Security Headers] → [CORS] → Route Handler

    1. Request ID: correlation ID for logging and tracing
    2. Logging: method, path, status and duration with the request ID
    3. Security Headers: hardening headers on every response
    4. CORS: applied by FastAPI's CORSMiddleware (handles preflight)
"""
