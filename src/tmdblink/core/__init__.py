"""Core batch orchestration.

This module contains the bounded dispatcher that fans identifiers out to
concurrent lookups and the orchestrator that drives a complete batch.
"""
