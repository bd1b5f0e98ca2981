"""Decorators for sysview commands."""

import functools
import logging
from typing import Any, Callable

import typer
import yaml
from rich.console import Console

from .converter import UnknownRelationshipTypeError

logger = logging.getLogger(__name__)
console = Console()


def handle_view_errors(func: Callable) -> Callable:
    """
    Decorator to handle common errors of workspace and view commands.

    Centralizes error handling for:
    - FileNotFoundError: Workspace or views file doesn't exist
    - UnknownRelationshipTypeError: Workspace produced by a broken analyzer
    - yaml.YAMLError: Unparseable workspace or views file
    - ValueError: Invalid view definitions or arguments
    - General exceptions: Unexpected errors
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except FileNotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] File not found: {e}")
            raise typer.Exit(code=1)
        except UnknownRelationshipTypeError as e:
            console.print(f"[bold red]Error:[/bold red] Invalid workspace: {e}")
            console.print("[yellow]Tip: The workspace was produced with an unsupported relationship vocabulary[/yellow]")
            raise typer.Exit(code=1)
        except yaml.YAMLError as e:
            console.print(f"[bold red]Error:[/bold red] Could not parse file: {e}")
            raise typer.Exit(code=1)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] Invalid input: {e}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            console.print(f"[bold red]Unexpected error:[/bold red] {e}")
            raise typer.Exit(code=1)

    return wrapper
