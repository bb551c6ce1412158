"""
Persistence gateway for the movie collection.

Defines the storage contract the collection depends on and the JSON file
implementation that ships with MovieBox.
"""
import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from models import Movie

DEFAULT_MOVIES_FILE = "movies.json"


class CorruptDataError(ValueError):
    """Raised when stored data cannot be turned into movies."""


class MovieRepository(ABC):
    """
    Storage contract for the whole collection.

    Implementations must return an empty list rather than raise when there
    is no stored data. They may also report corrupt data as an empty list.
    """

    @abstractmethod
    async def load_movies(self) -> List[Movie]:
        """Load every stored movie in stored order."""
        ...

    @abstractmethod
    async def save_movies(self, movies: Iterable[Movie]) -> bool:
        """
        Replace the stored collection with movies.

        Returns:
            True if the collection was written, False otherwise
        """
        ...


def movie_to_dict(movie: Movie) -> Dict[str, Any]:
    return {
        'Title': movie.title,
        'Director': movie.director,
        'ReleaseYear': movie.release_year,
        'Rating': movie.rating
    }


def _normalize_key(key: str) -> str:
    return key.replace('_', '').lower()


def movie_from_dict(data: Any) -> Movie:
    """
    Build a Movie from one stored JSON object.

    Key matching is case-insensitive and ignores underscores, so "Title",
    "title" and "release_year"/"ReleaseYear" are all accepted.

    Raises:
        CorruptDataError: If the entry is not an object or a field is missing
            or has the wrong type
    """
    if not isinstance(data, dict):
        raise CorruptDataError(f"Expected an object, got {type(data).__name__}")

    fields = {_normalize_key(str(key)): value for key, value in data.items()}

    title = fields.get('title')
    director = fields.get('director')
    year = fields.get('releaseyear')
    rating = fields.get('rating')

    if not isinstance(title, str) or not isinstance(director, str):
        raise CorruptDataError(f"Title and director must be strings: {data!r}")
    # bool is an int subclass
    if not isinstance(year, int) or isinstance(year, bool):
        raise CorruptDataError(f"Release year must be an integer: {data!r}")
    if not isinstance(rating, (int, float)) or isinstance(rating, bool):
        raise CorruptDataError(f"Rating must be a number: {data!r}")

    return Movie(title=title, director=director, release_year=year, rating=float(rating))


class JsonMovieRepository(MovieRepository):
    """Stores the collection as a pretty-printed JSON array."""

    def __init__(self, file_path: Optional[str] = None):
        """
        Initialize the JsonMovieRepository.

        Args:
            file_path: Path to the JSON file storing the collection.
                       If None, uses MOVIEBOX_FILE env var or defaults to "movies.json"
        """
        if file_path is None:
            file_path = os.environ.get('MOVIEBOX_FILE', DEFAULT_MOVIES_FILE)
        self.file_path = Path(file_path)

    async def load_movies(self) -> List[Movie]:
        """
        Load the collection from the JSON file.

        Returns an empty list if the file doesn't exist, is blank or is
        corrupted. Other read errors (permissions, a directory in place of
        the file) propagate to the caller.
        """
        return await asyncio.to_thread(self._read)

    async def save_movies(self, movies: Iterable[Movie]) -> bool:
        """
        Overwrite the JSON file with movies.

        Write failures are logged and reported as False, never raised.
        """
        snapshot = list(movies)
        return await asyncio.to_thread(self._write, snapshot)

    def _read(self) -> List[Movie]:
        if not self.file_path.exists():
            logger.info(f"[Repository] No collection file at {self.file_path}, starting empty")
            return []

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except UnicodeDecodeError as e:
            logger.warning(f"[Repository] Collection file {self.file_path} is not valid UTF-8 and was ignored: {e}")
            return []

        if not content.strip():
            return []

        try:
            data = json.loads(content)
            if not isinstance(data, list):
                raise CorruptDataError(f"Expected a JSON array, got {type(data).__name__}")
            movies = [movie_from_dict(entry) for entry in data]
        except (json.JSONDecodeError, CorruptDataError) as e:
            logger.warning(f"[Repository] Collection file {self.file_path} is corrupt and was ignored: {e}")
            return []

        logger.info(f"[Repository] Loaded {len(movies)} movies from {self.file_path}")
        return movies

    def _write(self, movies: List[Movie]) -> bool:
        # Serialize fully and write beside the target, then swap it in
        temp_path = self.file_path.with_name(self.file_path.name + '.tmp')
        try:
            content = json.dumps([movie_to_dict(m) for m in movies], indent=2, ensure_ascii=False)
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, self.file_path)
        except (OSError, TypeError, ValueError):
            logger.exception(f"[Repository] Failed to save movies to {self.file_path}")
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"[Repository] Could not remove temporary file {temp_path}: {e}")
            return False

        logger.debug(f"[Repository] Saved {len(movies)} movies to {self.file_path}")
        return True
