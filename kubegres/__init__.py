"""Blocking operations, backup state and the reconcile pass of a PostgreSQL cluster operator."""

__version__ = "0.1.0"