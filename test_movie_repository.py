"""
Unit tests for the JSON movie repository.
"""
import asyncio
import json
from unittest.mock import patch

import pytest

from models import Movie
from movie_repository import (
    CorruptDataError,
    JsonMovieRepository,
    MovieRepository,
    movie_from_dict,
    movie_to_dict,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def file_path(tmp_path):
    return tmp_path / "movies.json"


@pytest.fixture
def repository(file_path):
    """Create a JsonMovieRepository with a temporary file path."""
    return JsonMovieRepository(str(file_path))


@pytest.fixture
def sample_movies():
    return [
        Movie("The Godfather", "Francis Ford Coppola", 1972, 9.2),
        Movie("Pulp Fiction", "Quentin Tarantino", 1994, 8.9),
        Movie("Amélie", "Jean-Pierre Jeunet", 2001, 8.3),
    ]


def load(repository):
    return asyncio.run(repository.load_movies())


def save(repository, movies):
    return asyncio.run(repository.save_movies(movies))


# ============================================================================
# JSONMOVIEREPOSITORY TESTS
# ============================================================================

class TestJsonMovieRepository:
    """Tests for the JsonMovieRepository class."""

    def test_is_a_movie_repository(self, repository):
        assert isinstance(repository, MovieRepository)

    def test_missing_file_loads_empty(self, repository, file_path):
        """Test that a missing file is treated as an empty collection."""
        assert load(repository) == []
        assert not file_path.exists()

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("MOVIEBOX_FILE", raising=False)
        assert JsonMovieRepository().file_path.name == "movies.json"

    def test_path_from_environment(self, monkeypatch, tmp_path):
        """Test that MOVIEBOX_FILE is used when no path is given."""
        monkeypatch.setenv("MOVIEBOX_FILE", str(tmp_path / "env.json"))

        assert JsonMovieRepository().file_path == tmp_path / "env.json"

    def test_save_load_round_trip(self, repository, sample_movies):
        """Test that movies survive a save and load unchanged and in order."""
        assert save(repository, sample_movies) is True

        assert load(repository) == sample_movies

    def test_round_trip_keeps_full_float_precision(self, repository):
        movies = [Movie("Precise", "Someone", 2020, 0.1 + 0.2), Movie("Third", "Someone", 2021, 1 / 3)]

        save(repository, movies)
        loaded = load(repository)

        assert loaded[0].rating == 0.1 + 0.2
        assert loaded[1].rating == 1 / 3

    def test_empty_round_trip(self, repository, file_path):
        """Test that saving an empty collection writes an empty array."""
        assert save(repository, []) is True

        assert json.loads(file_path.read_text(encoding="utf-8")) == []
        assert load(repository) == []

    def test_save_replaces_previous_content(self, repository, sample_movies):
        save(repository, sample_movies)
        save(repository, sample_movies[:1])

        assert load(repository) == sample_movies[:1]

    def test_save_creates_pretty_formatted_json(self, repository, file_path, sample_movies):
        """Test that saved JSON is pretty-formatted with indentation."""
        save(repository, sample_movies)

        content = file_path.read_text(encoding="utf-8")
        assert '\n' in content
        assert '  ' in content  # 2-space indent
        assert "Amélie" in content  # non-ASCII written as-is

        data = json.loads(content)
        assert data[0] == {
            "Title": "The Godfather",
            "Director": "Francis Ford Coppola",
            "ReleaseYear": 1972,
            "Rating": 9.2
        }

    def test_save_creates_parent_directories(self, tmp_path, sample_movies):
        repository = JsonMovieRepository(str(tmp_path / "nested" / "dir" / "movies.json"))

        assert save(repository, sample_movies) is True
        assert load(repository) == sample_movies

    def test_field_names_are_case_insensitive(self, repository, file_path):
        """Test that any casing of the field names is accepted on read."""
        file_path.write_text(json.dumps([
            {"title": "Heat", "director": "Michael Mann", "releaseYear": 1995, "rating": 8.3},
            {"TITLE": "Alien", "DIRECTOR": "Ridley Scott", "RELEASEYEAR": 1979, "RATING": 8},
            {"Title": "Up", "Director": "Pete Docter", "release_year": 2009, "Rating": 8.2},
        ]), encoding="utf-8")

        assert load(repository) == [
            Movie("Heat", "Michael Mann", 1995, 8.3),
            Movie("Alien", "Ridley Scott", 1979, 8.0),
            Movie("Up", "Pete Docter", 2009, 8.2),
        ]

    def test_integer_rating_is_loaded_as_float(self, repository, file_path):
        file_path.write_text('[{"Title": "A", "Director": "B", "ReleaseYear": 2000, "Rating": 7}]', encoding="utf-8")

        rating = load(repository)[0].rating
        assert rating == 7.0
        assert isinstance(rating, float)

    @pytest.mark.parametrize("content", ["", "   ", "\n\n"])
    def test_blank_file_loads_empty(self, repository, file_path, content):
        file_path.write_text(content, encoding="utf-8")

        assert load(repository) == []

    @pytest.mark.parametrize("content", [
        "{ this is not valid JSON }",
        '{"movies": []}',
        '"just a string"',
        '[{"Title": "No director", "ReleaseYear": 2000, "Rating": 5.0}]',
        '[{"Title": "A", "Director": "B", "ReleaseYear": "2000", "Rating": 5.0}]',
        '[{"Title": "A", "Director": "B", "ReleaseYear": 2000, "Rating": "high"}]',
        '[{"Title": "A", "Director": "B", "ReleaseYear": 2000.5, "Rating": 5.0}]',
        '[42]',
    ])
    def test_corrupted_file_loads_empty(self, repository, file_path, content):
        """Test that corrupted data is treated as no data rather than an error."""
        file_path.write_text(content, encoding="utf-8")

        assert load(repository) == []

    def test_invalid_utf8_loads_empty(self, repository, file_path):
        file_path.write_bytes(b"\xff\xfe\x00garbage")

        assert load(repository) == []

    def test_read_error_propagates(self, tmp_path):
        """Test that a directory in place of the file is reported, not hidden."""
        repository = JsonMovieRepository(str(tmp_path))

        with pytest.raises(OSError):
            load(repository)

    def test_write_failure_is_swallowed(self, repository, sample_movies):
        """Test that a failed write returns False instead of raising."""
        with patch("builtins.open", side_effect=OSError("disk full (simulated)")):
            assert save(repository, sample_movies) is False

    def test_write_to_directory_returns_false(self, tmp_path, sample_movies):
        repository = JsonMovieRepository(str(tmp_path))

        assert save(repository, sample_movies) is False

    def test_failed_serialization_keeps_previous_file(self, repository, file_path, sample_movies):
        """Test that a save that cannot serialize leaves the earlier file byte-identical."""
        save(repository, sample_movies[:1])
        before = file_path.read_bytes()

        with patch("movie_repository.json.dumps", side_effect=TypeError("not serializable (simulated)")):
            assert save(repository, sample_movies) is False

        assert file_path.read_bytes() == before
        assert load(repository) == sample_movies[:1]

    def test_failed_replace_keeps_previous_file(self, repository, file_path, tmp_path, sample_movies):
        """Test that a write that fails before the swap leaves no partial file behind."""
        save(repository, sample_movies[:1])
        before = file_path.read_bytes()

        with patch("movie_repository.os.replace", side_effect=OSError("disk full (simulated)")):
            assert save(repository, sample_movies) is False

        assert file_path.read_bytes() == before
        assert list(tmp_path.glob("*.tmp")) == []

    def test_save_leaves_no_temporary_file(self, repository, tmp_path, sample_movies):
        save(repository, sample_movies)

        assert [p.name for p in tmp_path.iterdir()] == ["movies.json"]

    def test_save_accepts_any_iterable(self, repository, sample_movies):
        assert save(repository, (m for m in sample_movies)) is True
        assert load(repository) == sample_movies


class TestMovieSerialization:
    """Tests for movie_to_dict and movie_from_dict."""

    def test_movie_to_dict(self):
        movie = Movie("Heat", "Michael Mann", 1995, 8.3)

        assert movie_to_dict(movie) == {
            "Title": "Heat",
            "Director": "Michael Mann",
            "ReleaseYear": 1995,
            "Rating": 8.3
        }

    def test_movie_from_dict_ignores_extra_fields(self):
        data = {"Title": "Heat", "Director": "Michael Mann", "ReleaseYear": 1995, "Rating": 8.3, "Status": 1}

        assert movie_from_dict(data) == Movie("Heat", "Michael Mann", 1995, 8.3)

    @pytest.mark.parametrize("data", [
        None,
        [],
        {"Title": "A", "Director": "B", "ReleaseYear": True, "Rating": 5.0},
        {"Title": "A", "Director": "B", "ReleaseYear": 2000, "Rating": False},
        {"Title": None, "Director": "B", "ReleaseYear": 2000, "Rating": 5.0},
    ])
    def test_movie_from_dict_rejects_bad_entries(self, data):
        with pytest.raises(CorruptDataError):
            movie_from_dict(data)
