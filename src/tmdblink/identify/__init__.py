"""Identifier extraction from input documents."""
