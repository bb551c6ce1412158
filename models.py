"""Value types shared by the collection, filter and statistics modules."""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class Movie:
    """A single movie in the collection. Compared by value."""

    title: str
    director: str
    release_year: int
    rating: float

    def __post_init__(self):
        if not isinstance(self.title, str) or not isinstance(self.director, str):
            raise TypeError("title and director must be strings")
        # bool is an int subclass
        if not isinstance(self.release_year, int) or isinstance(self.release_year, bool):
            raise TypeError(f"release_year must be an int, got {type(self.release_year).__name__}")
        if not isinstance(self.rating, (int, float)) or isinstance(self.rating, bool):
            raise TypeError(f"rating must be a number, got {type(self.rating).__name__}")
        object.__setattr__(self, 'rating', float(self.rating))


@dataclass(frozen=True)
class FilterCriteria:
    """
    Optional search constraints, combined with AND.

    A field left as None does not constrain the search. Blank title or
    director strings count as None.

    Attributes:
        title: Case-insensitive substring of the movie title
        director_contains: Case-insensitive substring of the director name
        year: Exact release year
        rating_min: Inclusive lower bound on rating
        rating_max: Inclusive upper bound on rating
        result_count: Maximum number of matches to return
    """

    title: Optional[str] = None
    director_contains: Optional[str] = None
    year: Optional[int] = None
    rating_min: Optional[float] = None
    rating_max: Optional[float] = None
    result_count: Optional[int] = None


@dataclass(frozen=True)
class CollectionStats:
    """Aggregates computed on demand from the current collection."""

    total_count: int
    average_rating: float
    highest_rated_movie: Optional[Movie]
    movies_per_decade: Dict[int, int] = field(default_factory=dict)
