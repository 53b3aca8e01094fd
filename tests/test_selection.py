from unittest.mock import MagicMock

import pytest

from taskseq_vault.errors import FetchFailed
from taskseq_vault.selection import NonInteractiveSelector, PromptSelector


def test_non_interactive_takes_first() -> None:
    assert NonInteractiveSelector().select_one(["A", "B"]) == "A"


def test_non_interactive_strict_refuses() -> None:
    """Verifies that strict automation never guesses a task sequence."""
    with pytest.raises(FetchFailed, match="interactive selection is disabled"):
        NonInteractiveSelector(strict=True).select_one(["A", "B"])


@pytest.mark.parametrize("selector", [NonInteractiveSelector(), PromptSelector()])
def test_empty_candidates_fail(selector: object) -> None:
    """Verifies that an empty site cannot yield a choice."""
    with pytest.raises(FetchFailed, match="No task sequences"):
        selector.select_one([])  # type: ignore[attr-defined]


def test_prompt_selector_maps_number_to_name(mocker: MagicMock) -> None:
    """Verifies that the chosen row number maps back to its name.

    Args:
        mocker (MagicMock): Pytest fixture for mocking.
    """
    mocker.patch("taskseq_vault.selection.console")
    mock_ask = mocker.patch("taskseq_vault.selection.Prompt.ask", return_value="2")

    choice = PromptSelector().select_one(["Capture-Ref", "Deploy-Win10"])

    assert choice == "Deploy-Win10"
    assert mock_ask.call_args.kwargs["choices"] == ["1", "2"]
