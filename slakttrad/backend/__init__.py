"""Quart REST backend."""
