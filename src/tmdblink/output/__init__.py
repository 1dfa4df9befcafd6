"""Output document writers."""
