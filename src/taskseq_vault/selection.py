import logging

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from .constants import APP_NAME
from .errors import FetchFailed

console = Console()
logger = logging.getLogger(APP_NAME)


class Selector:
    """Base class for choosing one task sequence out of the available names."""

    def select_one(self, candidates: list[str]) -> str:
        """Returns one entry of `candidates`.

        Raises:
            FetchFailed: If no choice can be made.
        """
        raise NotImplementedError


class NonInteractiveSelector(Selector):
    """Picks without asking, for scheduled runs.

    Args:
        strict (bool): If True, refuse to guess and raise instead of taking the
            first candidate.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def select_one(self, candidates: list[str]) -> str:
        if not candidates:
            raise FetchFailed("No task sequences are available on the site.")
        if self.strict:
            raise FetchFailed(
                "No task sequence name configured and interactive selection is disabled."
            )
        choice = candidates[0]
        logger.info(f"No task sequence configured; using first available: {choice}")
        return choice


class PromptSelector(Selector):
    """Shows a numbered table of candidates and prompts for one."""

    def select_one(self, candidates: list[str]) -> str:
        if not candidates:
            raise FetchFailed("No task sequences are available on the site.")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Task Sequence", style="cyan")
        for i, name in enumerate(candidates, start=1):
            table.add_row(str(i), name)
        console.print(table)

        choices = [str(i) for i in range(1, len(candidates) + 1)]
        choice = Prompt.ask(
            "Select a task sequence", choices=choices, default="1", show_choices=False
        )
        return candidates[int(choice) - 1]
