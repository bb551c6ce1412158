#!/usr/bin/env python3
"""
MovieBox - Command-line interface for managing a personal movie collection.
"""
import argparse
import asyncio
import os
import sys
from datetime import datetime
from typing import Iterable, List, Optional

from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table

from collection import CollectionInitializationError, MovieCollection
from models import CollectionStats, FilterCriteria, Movie
from movie_repository import DEFAULT_MOVIES_FILE, JsonMovieRepository

# Optional dependency for the interactive menu
try:
    import questionary
    from questionary import Choice
    QUESTIONARY_AVAILABLE = True
except ImportError:
    questionary = None  # type: ignore
    Choice = None  # type: ignore
    QUESTIONARY_AVAILABLE = False

console = Console()

MIN_RELEASE_YEAR = 1888
MIN_RATING = 0.0
MAX_RATING = 10.0

INITIAL_MOVIES = [
    Movie("The Shawshank Redemption", "Frank Darabont", 1994, 9.3),
    Movie("The Godfather", "Francis Ford Coppola", 1972, 9.2),
    Movie("The Dark Knight", "Christopher Nolan", 2008, 9.0),
    Movie("Pulp Fiction", "Quentin Tarantino", 1994, 8.9),
    Movie("Forrest Gump", "Robert Zemeckis", 1994, 8.8),
    Movie("Inception", "Christopher Nolan", 2010, 8.8),
]

MENU_LIST = "List all movies"
MENU_ADD = "Add a new movie"
MENU_SEARCH = "Search for movies"
MENU_STATS = "Show collection statistics"
MENU_DELETE = "Delete a movie"
MENU_EXIT = "Exit"


def max_release_year() -> int:
    return datetime.now().year + 10


def validate_year(year: int) -> int:
    """
    Check that a release year is plausible.

    Raises:
        ValueError: If year is outside 1888 to ten years from now
    """
    upper = max_release_year()
    if not MIN_RELEASE_YEAR <= year <= upper:
        raise ValueError(f"Release year must be between {MIN_RELEASE_YEAR} and {upper}")
    return year


def validate_rating(rating: float) -> float:
    """
    Check that a rating is on the 0-10 scale.

    Raises:
        ValueError: If rating is outside 0.0-10.0
    """
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def configure_logging(verbose: bool) -> None:
    """Send loguru output to stderr, DEBUG when verbose and WARNING otherwise."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def open_collection(file_path: str) -> MovieCollection:
    """
    Create a collection backed by a JSON file and load it.

    Raises:
        CollectionInitializationError: If the file cannot be read
    """
    collection = MovieCollection(JsonMovieRepository(file_path))
    asyncio.run(collection.initialize())
    return collection


def save_collection(collection: MovieCollection) -> bool:
    """Save the collection, printing a warning if the write did not happen."""
    saved = asyncio.run(collection.save())
    if saved is False:
        console.print("[yellow]Warning: the collection could not be saved[/yellow]")
        return False
    return True


def add_initial_data(collection: MovieCollection) -> None:
    """Seed an empty collection with a few well-known movies."""
    for movie in INITIAL_MOVIES:
        collection.add(movie)


def display_movies_table(movies: Iterable[Movie], title: str = "Movies") -> None:
    """
    Display movies in a formatted table.

    Args:
        movies: Movies to show, numbered from 1 in the given order
        title: Table caption
    """
    movies = list(movies)
    if not movies:
        console.print("[yellow]No movies found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="cyan", no_wrap=False)
    table.add_column("Director", style="blue", no_wrap=False)
    table.add_column("Year", style="magenta", justify="center")
    table.add_column("Rating", style="green", justify="right")

    for position, movie in enumerate(movies, 1):
        table.add_row(
            str(position),
            movie.title,
            movie.director,
            str(movie.release_year),
            f"{movie.rating:.1f}"
        )

    console.print(table)


def display_stats(stats: CollectionStats) -> None:
    """Print collection statistics, decades in ascending order."""
    console.print("[bold cyan]Movie Collection Stats[/bold cyan]")
    console.print(f"  Total movies:   {stats.total_count}")
    console.print(f"  Average rating: {stats.average_rating:.2f}")

    best = stats.highest_rated_movie
    if best is None:
        console.print("  Highest rated:  N/A")
    else:
        console.print(f"  Highest rated:  {best.title} ({best.rating:.1f})")

    console.print("  Movies per decade:")
    for decade in sorted(stats.movies_per_decade):
        console.print(f"    {decade}s: {stats.movies_per_decade[decade]} movie(s)")


def build_criteria(args: argparse.Namespace) -> FilterCriteria:
    """Turn search command options into FilterCriteria."""
    return FilterCriteria(
        title=args.title,
        director_contains=args.director,
        year=args.year,
        rating_min=args.min_rating,
        rating_max=args.max_rating,
        result_count=args.limit
    )


def get_confirmation(movie: Movie, yes_flag: bool) -> bool:
    """
    Ask the user to confirm deleting a movie.

    Args:
        movie: The movie about to be deleted
        yes_flag: Skip confirmation if True

    Returns:
        True if user confirms, False otherwise
    """
    if yes_flag:
        return True

    console.print(f"\n[yellow]This will delete '{movie.title}' ({movie.release_year}) from your collection.[/yellow]\n")
    return Confirm.ask("Continue?", default=False)


def _report_error(e: Exception, verbose: bool) -> int:
    console.print(f"[bold red]Error:[/bold red] {str(e)}")
    if verbose:
        import traceback
        console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
    return 1


def cmd_list(args: argparse.Namespace) -> int:
    """
    Execute the list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        collection = open_collection(args.file)
        display_movies_table(collection.get_all(), title="All Movies")
        if args.verbose:
            console.print(f"\n[bold]Total: {len(collection)} movies[/bold]")
        return 0
    except Exception as e:
        return _report_error(e, args.verbose)


def cmd_add(args: argparse.Namespace) -> int:
    """Execute the add command and save the collection."""
    try:
        title = args.title.strip()
        director = args.director.strip()
        if not title or not director:
            console.print("[red]Error: Title and director are required[/red]")
            return 1

        movie = Movie(
            title=title,
            director=director,
            release_year=validate_year(args.year),
            rating=validate_rating(args.rating)
        )

        collection = open_collection(args.file)
        collection.add(movie)
        if not save_collection(collection):
            return 1

        console.print(f"[green]Movie added successfully![/green]")
        console.print(f"You added: {movie.title} ({movie.release_year})")
        return 0

    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except Exception as e:
        return _report_error(e, args.verbose)


def cmd_search(args: argparse.Namespace) -> int:
    """Execute the search command."""
    try:
        collection = open_collection(args.file)
        results = collection.search(build_criteria(args))
        display_movies_table(results, title="Search Results")
        if args.verbose:
            console.print(f"\n[bold]{len(results)} of {len(collection)} movies matched[/bold]")
        return 0
    except Exception as e:
        return _report_error(e, args.verbose)


def cmd_stats(args: argparse.Namespace) -> int:
    """Execute the stats command."""
    try:
        collection = open_collection(args.file)
        display_stats(collection.stats())
        return 0
    except Exception as e:
        return _report_error(e, args.verbose)


def cmd_delete(args: argparse.Namespace) -> int:
    """
    Execute the delete command.

    Positions are 1-based, as shown by the list command.
    """
    try:
        collection = open_collection(args.file)
        movies = collection.get_all()

        if not movies:
            console.print("[yellow]No movies available to delete[/yellow]")
            return 1

        index = args.position - 1
        if index < 0 or index >= len(movies):
            console.print(f"[red]Error: Please select a number between 1 and {len(movies)}[/red]")
            return 1

        movie = movies[index]
        if not get_confirmation(movie, args.yes):
            console.print("[yellow]Deletion cancelled[/yellow]")
            return 0

        if not collection.delete_at(index):
            console.print("[red]Failed to delete movie[/red]")
            return 1

        if not save_collection(collection):
            return 1

        console.print(f"[green]Deleted: {movie.title}[/green]")
        return 0

    except Exception as e:
        return _report_error(e, args.verbose)


# ============================================================================
# INTERACTIVE MENU
# ============================================================================

def prompt_required_text(prompt: str) -> str:
    """Ask until a non-blank answer is given."""
    while True:
        value = Prompt.ask(prompt, default="", show_default=False).strip()
        if value:
            return value
        console.print("[red]This field is required. Please try again.[/red]")


def prompt_int_in_range(prompt: str, minimum: int, maximum: int) -> int:
    while True:
        value = IntPrompt.ask(prompt)
        if minimum <= value <= maximum:
            return value
        console.print(f"[red]Invalid range. Please enter a number between {minimum} and {maximum}.[/red]")


def prompt_float_in_range(prompt: str, minimum: float, maximum: float) -> float:
    while True:
        value = FloatPrompt.ask(prompt)
        if minimum <= value <= maximum:
            return value
        console.print(f"[red]Invalid range. Please enter a number between {minimum} and {maximum}.[/red]")


def prompt_optional_int(prompt: str) -> Optional[int]:
    """Ask for a whole number; an empty answer means no value."""
    while True:
        raw = Prompt.ask(prompt, default="", show_default=False).strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            console.print("[red]Invalid number. Please enter a whole number (e.g., 5).[/red]")


def prompt_optional_float(prompt: str) -> Optional[float]:
    """Ask for a number; an empty answer means no value."""
    while True:
        raw = Prompt.ask(prompt, default="", show_default=False).strip()
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Invalid number. Please enter a number (e.g., 8.8).[/red]")


def prompt_new_movie() -> Movie:
    console.print("[bold cyan]Add a New Movie[/bold cyan]")
    title = prompt_required_text("Title")
    director = prompt_required_text("Director")
    year = prompt_int_in_range(f"Release year ({MIN_RELEASE_YEAR}-{max_release_year()})", MIN_RELEASE_YEAR, max_release_year())
    rating = prompt_float_in_range(f"Rating ({MIN_RATING}-{MAX_RATING})", MIN_RATING, MAX_RATING)
    return Movie(title=title, director=director, release_year=year, rating=rating)


def prompt_search_criteria() -> FilterCriteria:
    console.print("[bold cyan]Search for Movies[/bold cyan]")
    console.print("[dim](Press ENTER to skip any filter)[/dim]")
    return FilterCriteria(
        title=Prompt.ask("Title contains", default="", show_default=False) or None,
        director_contains=Prompt.ask("Director contains", default="", show_default=False) or None,
        year=prompt_optional_int("Exact year"),
        rating_min=prompt_optional_float("Minimum rating"),
        rating_max=prompt_optional_float("Maximum rating"),
        result_count=prompt_optional_int("Limit results (e.g., 5)")
    )


def _require_questionary() -> None:
    if not QUESTIONARY_AVAILABLE:
        raise RuntimeError(
            "The interactive menu requires the 'questionary' package. "
            "Install it with: pip install questionary"
        )


def interactive_delete_selection(movies: List[Movie]) -> int:
    """
    Let the user pick a movie to delete.

    Args:
        movies: Movies in collection order

    Returns:
        Zero-based index of the selected movie, or -1 if cancelled

    Raises:
        RuntimeError: If questionary is not installed
    """
    _require_questionary()

    if not movies:
        console.print("[yellow]No movies available to delete[/yellow]")
        return -1

    choices = [
        Choice(
            title=f"{position}. {movie.title} ({movie.release_year}) - {movie.director}",
            value=position - 1
        )
        for position, movie in enumerate(movies, 1)
    ]
    choices.append(Choice(title="Cancel", value=-1))

    selected = questionary.select("Select a movie to delete:", choices=choices).ask()

    # User cancelled (Ctrl+C)
    if selected is None:
        return -1
    return selected


def run_menu(collection: MovieCollection) -> None:
    """
    Run the interactive main menu until the user exits.

    Raises:
        RuntimeError: If questionary is not installed
    """
    _require_questionary()

    while True:
        choice = questionary.select(
            "MovieBox Main Menu",
            choices=[MENU_LIST, MENU_ADD, MENU_SEARCH, MENU_STATS, MENU_DELETE, MENU_EXIT]
        ).ask()

        if choice is None or choice == MENU_EXIT:
            return

        if choice == MENU_LIST:
            display_movies_table(collection.get_all(), title="All Movies")

        elif choice == MENU_ADD:
            movie = prompt_new_movie()
            collection.add(movie)
            console.print("[green]Movie added successfully![/green]")
            console.print(f"You added: {movie.title} ({movie.release_year})")

        elif choice == MENU_SEARCH:
            results = collection.search(prompt_search_criteria())
            display_movies_table(results, title="Search Results")

        elif choice == MENU_STATS:
            display_stats(collection.stats())

        elif choice == MENU_DELETE:
            index = interactive_delete_selection(list(collection.get_all()))
            if index == -1:
                console.print("[yellow]Deletion cancelled[/yellow]")
            elif collection.delete_at(index):
                console.print("[green]Movie deleted successfully![/green]")
            else:
                console.print("[red]Failed to delete movie[/red]")

        console.print()


def cmd_menu(args: argparse.Namespace) -> int:
    """Run the interactive menu, then save the collection."""
    try:
        collection = open_collection(args.file)
        if collection.is_empty():
            add_initial_data(collection)

        run_menu(collection)

        if not save_collection(collection):
            return 1
        console.print("\nGoodbye!")
        return 0

    except RuntimeError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    except Exception as e:
        return _report_error(e, args.verbose)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moviebox",
        description="MovieBox - Manage your personal movie collection",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--file',
        default=os.getenv('MOVIEBOX_FILE', DEFAULT_MOVIES_FILE),
        help='Collection JSON file (overrides MOVIEBOX_FILE env var)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('list', help='List all movies')

    add_parser = subparsers.add_parser('add', help='Add a movie')
    add_parser.add_argument('title', help='Movie title')
    add_parser.add_argument('director', help='Director name')
    add_parser.add_argument('year', type=int, help='Release year')
    add_parser.add_argument('rating', type=float, help='Rating from 0.0 to 10.0')

    search_parser = subparsers.add_parser('search', help='Search movies')
    search_parser.add_argument('--title', '-t', help='Title contains (case-insensitive)')
    search_parser.add_argument('--director', '-d', help='Director contains (case-insensitive)')
    search_parser.add_argument('--year', type=int, help='Exact release year')
    search_parser.add_argument('--min-rating', type=float, help='Minimum rating (inclusive)')
    search_parser.add_argument('--max-rating', type=float, help='Maximum rating (inclusive)')
    search_parser.add_argument('--limit', '-n', type=int, help='Maximum number of results')

    subparsers.add_parser('stats', help='Show collection statistics')

    delete_parser = subparsers.add_parser('delete', help='Delete a movie by its list position')
    delete_parser.add_argument('position', type=int, help='Position shown by the list command (1-based)')
    delete_parser.add_argument('--yes', '-y', action='store_true', help='Skip confirmation prompt')

    subparsers.add_parser('menu', help='Interactive menu')

    for subparser in subparsers.choices.values():
        subparser.add_argument(
            '--verbose', '-v',
            action='store_true',
            help='Show detailed output'
        )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    # Load environment variables from .env file
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.verbose)

    handlers = {
        'list': cmd_list,
        'add': cmd_add,
        'search': cmd_search,
        'stats': cmd_stats,
        'delete': cmd_delete,
        'menu': cmd_menu,
    }
    return handlers[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
