"""
Infrastructure layer - adapters for the governance engine.

This layer contains:
- PostgreSQL proposal store
- System clock
- In-memory stubs for development and testing
- Structured logging and correlation IDs

IMPORT RULES:
- CAN import from: domain, application
- Implements ports defined in application layer
"""
