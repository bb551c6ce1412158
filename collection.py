import asyncio
from typing import List, Optional, Tuple

from loguru import logger

from collection_stats import calculate_stats
from filter import MovieFilter
from models import CollectionStats, FilterCriteria, Movie
from movie_repository import MovieRepository


class CollectionInitializationError(Exception):
    """Raised when the collection cannot be loaded from its repository."""

    def __init__(self, cause: BaseException):
        """
        Initialize CollectionInitializationError.

        Args:
            cause: The exception raised by the repository
        """
        self.cause = cause
        super().__init__(f"Failed to initialize movie collection: {cause}")


class MovieCollection:
    """Manages the ordered, in-memory movie collection."""

    def __init__(self, repository: MovieRepository):
        """
        Initialize the MovieCollection with an empty list.

        Args:
            repository: Storage used by initialize() and save()
        """
        self.repository = repository
        self._movies: List[Movie] = []
        self._io_lock = asyncio.Lock()

    async def initialize(self):
        """
        Replace the in-memory list with the repository's contents.

        Raises:
            CollectionInitializationError: If the repository fails to load.
                The in-memory list is left unchanged.
        """
        async with self._io_lock:
            try:
                loaded = list(await self.repository.load_movies() or [])
            except Exception as e:
                logger.error(f"[Collection] Failed to initialize movies: {e}")
                raise CollectionInitializationError(e) from e

            self._movies.clear()
            self._movies.extend(loaded)
            logger.debug(f"[Collection] Initialized with {len(self._movies)} movies")

    async def save(self) -> bool:
        """Hand the full collection to the repository, replacing what it stored."""
        async with self._io_lock:
            return await self.repository.save_movies(tuple(self._movies))

    def add(self, movie: Movie):
        """
        Append a movie to the end of the collection.

        Raises:
            ValueError: If movie is None
            TypeError: If movie is not a Movie. Movie itself rejects
                wrongly typed fields when it is built.
        """
        if movie is None:
            raise ValueError("movie must not be None")
        if not isinstance(movie, Movie):
            raise TypeError(f"Expected a Movie, got {type(movie).__name__}")
        self._movies.append(movie)

    def delete_at(self, index: int) -> bool:
        """
        Remove the movie at a zero-based position.

        Returns:
            True if a movie was removed, False if index is out of range
        """
        if index < 0 or index >= len(self._movies):
            return False

        del self._movies[index]
        return True

    def remove(self, movie: Movie) -> bool:
        """
        Remove the first movie equal to the given one.

        Returns:
            True if a movie was removed, False otherwise
        """
        if movie is None:
            raise ValueError("movie must not be None")

        try:
            self._movies.remove(movie)
        except ValueError:
            return False
        return True

    def get_all(self) -> Tuple[Movie, ...]:
        """Return the movies in collection order."""
        return tuple(self._movies)

    def search(self, criteria: Optional[FilterCriteria] = None) -> List[Movie]:
        return MovieFilter(criteria).filter(self._movies)

    def stats(self) -> CollectionStats:
        return calculate_stats(self._movies)

    def clear(self):
        """Remove every movie from the collection."""
        self._movies.clear()

    def is_empty(self) -> bool:
        return not self._movies

    def __len__(self) -> int:
        return len(self._movies)
