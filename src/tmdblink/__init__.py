"""tmdblink - cross-reference IMDb identifiers against TMDB and emit Turtle."""

__version__ = "0.1.0"
