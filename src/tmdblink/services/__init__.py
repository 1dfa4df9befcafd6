"""External service integrations.

This module contains wrappers for the remote services tmdblink talks to.
Keeping them separate allows for easy mocking during testing.
"""
