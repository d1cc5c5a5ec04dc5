"""Engagement ledger services used by handlers.

Services are imported lazily by handlers so that SQLAlchemy and the
database engine are only loaded on routes that need them.
"""

# Do NOT import services here - use lazy loading in handlers instead
