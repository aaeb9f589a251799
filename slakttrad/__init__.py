"""
Släktträd - a small multi-tenant genealogy record-keeper.

This package provides the REST backend for trees, people and relations,
the CSV import/export tooling and a command-line client that drives bulk
imports against the API.
"""

__version__ = "0.1.0"
__author__ = "Släktträd Contributors"
