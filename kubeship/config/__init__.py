"""Typed configuration providers."""
