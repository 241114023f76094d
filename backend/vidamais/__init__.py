"""
Vida Mais Backend — Application Package Initializer
===================================================

What: Marks the `vidamais` directory as a Python package.
Who:  Imported by uvicorn (`vidamais.main:app`), pytest and the services.

Architecture Note:
    The patient registration core is split into four layers, each
    depending only on the ones below it:

    ┌─────────────────────────────────────┐
    │     Routes (FastAPI, HTTP only)     │
    ├─────────────────────────────────────┤
    │  Registration Workflow (services)   │  ← sanitize → validate → checks → persist
    ├─────────────────────────────────────┤
    │  Entity Rules  │   Record Store     │  ← pure rules / SQL statements
    ├─────────────────────────────────────┤
    │  Storage Adapter (async SQLAlchemy) │  ← one engine, one connection
    └─────────────────────────────────────┘

    Data only flows downwards on the way in and back up on the way out.
"""

__version__ = "1.0.0"
