"""Aggregate statistics over a movie collection."""

from collections import Counter
from typing import Sequence

from models import CollectionStats, Movie


def decade_of(year: int) -> int:
    """Return the first year of the decade containing year (1994 -> 1990)."""
    return (year // 10) * 10


def calculate_stats(movies: Sequence[Movie]) -> CollectionStats:
    """
    Calculate statistics for a sequence of movies.

    Args:
        movies: Movies to summarize

    Returns:
        CollectionStats with:
            - total_count: Number of movies
            - average_rating: Mean rating, 0.0 for an empty collection
            - highest_rated_movie: Best rated movie, ties broken by the
              alphabetically first title; None when empty
            - movies_per_decade: Count per decade start year, only for
              decades that have movies
    """
    total = len(movies)
    if total == 0:
        return CollectionStats(
            total_count=0,
            average_rating=0.0,
            highest_rated_movie=None,
            movies_per_decade={}
        )

    average = sum(movie.rating for movie in movies) / total
    highest = min(movies, key=lambda movie: (-movie.rating, movie.title))
    per_decade = Counter(decade_of(movie.release_year) for movie in movies)

    return CollectionStats(
        total_count=total,
        average_rating=average,
        highest_rated_movie=highest,
        movies_per_decade=dict(per_decade)
    )
