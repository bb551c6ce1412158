"""Criteria-based movie filtering module."""

from typing import Iterable, List, Optional

from models import FilterCriteria, Movie


def _has_text(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _contains(haystack: str, needle: str) -> bool:
    return needle.casefold() in haystack.casefold()


class MovieFilter:
    """Filter movies by a FilterCriteria with case-insensitive text matching."""

    def __init__(self, criteria: Optional[FilterCriteria] = None):
        """
        Initialize the movie filter.

        Args:
            criteria: The constraints to apply (default: no constraints)
        """
        self.criteria = criteria if criteria is not None else FilterCriteria()

    def filter(self, movies: Iterable[Movie]) -> List[Movie]:
        """
        Filter movies by every constraint set on the criteria.

        Args:
            movies: Movies to filter; the input is never modified

        Returns:
            New list of matching movies in their original order, truncated
            to result_count when it is set
        """
        criteria = self.criteria
        filtered = list(movies)

        if _has_text(criteria.title):
            filtered = [m for m in filtered if _contains(m.title, criteria.title)]

        if _has_text(criteria.director_contains):
            filtered = [m for m in filtered if _contains(m.director, criteria.director_contains)]

        if criteria.year is not None:
            filtered = [m for m in filtered if m.release_year == criteria.year]

        if criteria.rating_min is not None:
            filtered = [m for m in filtered if m.rating >= criteria.rating_min]

        if criteria.rating_max is not None:
            filtered = [m for m in filtered if m.rating <= criteria.rating_max]

        if criteria.result_count is not None:
            if criteria.result_count <= 0:
                return []
            filtered = filtered[:criteria.result_count]

        return filtered


def filter_movies(movies: Iterable[Movie], criteria: Optional[FilterCriteria] = None) -> List[Movie]:
    """Shortcut for MovieFilter(criteria).filter(movies)."""
    return MovieFilter(criteria).filter(movies)
