"""
Book Club API Application Package

REST backend for a book-club platform: accounts, clubs, memberships,
club ratings and club events.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (membership protocol, ratings, events, caching, rate limiting)
"""

__version__ = "0.1.0"
