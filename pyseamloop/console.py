"""
Console utilities and Rich formatting for pyseamloop.

Provides CLI output with the Rich library:
- Styled tables and panels for loop results
- Status messages
- Option groups for the --help screens
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from pyseamloop.analysis import LoopCandidate, LoopResult, LoopValidation

# Module-level rich console instance
rich_console = Console()

# ============================================================================
# STYLES
# ============================================================================

STYLE_SUCCESS = Style(color="green", bold=True)
STYLE_ERROR = Style(color="red", bold=True)
STYLE_WARNING = Style(color="yellow")
STYLE_INFO = Style(color="cyan")
STYLE_DIM = Style(dim=True)
STYLE_SCORE_HIGH = Style(color="green", bold=True)
STYLE_SCORE_MED = Style(color="yellow")
STYLE_SCORE_LOW = Style(color="red")

_OUTCOME_STYLES = {
    "precise": "green",
    "ranked": "cyan",
    "fallback": "yellow",
}


# ============================================================================
# UI COMPONENTS
# ============================================================================

def print_status(message: str, status: str = "info"):
    """Print a styled status message."""
    icons = {
        "success": ("✓", STYLE_SUCCESS),
        "error": ("✗", STYLE_ERROR),
        "warning": ("⚠", STYLE_WARNING),
        "info": ("•", STYLE_INFO),
    }
    icon, style = icons.get(status, ("•", STYLE_INFO))
    rich_console.print(f"[{style.color.name}]{icon}[/] {message}")


def score_to_style(score: float) -> Style:
    """Get appropriate style for a score value."""
    if score >= 0.75:
        return STYLE_SCORE_HIGH
    elif score >= 0.5:
        return STYLE_SCORE_MED
    else:
        return STYLE_SCORE_LOW


def format_score(score: float, width: int = 6) -> Text:
    """Format a score with appropriate coloring."""
    text = f"{score:.1%}".rjust(width)
    return Text(text, style=score_to_style(score))


def format_time(seconds: float) -> str:
    """Format seconds as mm:ss.sss."""
    return f"{int(seconds // 60):02d}:{seconds % 60:06.3f}"


def format_duration(duration: float) -> str:
    """Format duration in seconds to human readable."""
    if duration < 60:
        return f"{duration:.2f}s"
    else:
        mins = int(duration // 60)
        secs = duration % 60
        return f"{mins}m {secs:.1f}s"


def create_results_table(
    title: str,
    columns: list[tuple[str, str, str]],  # (name, style, justify)
) -> Table:
    """Create a styled results table."""
    table = Table(
        title=title,
        box=ROUNDED,
        header_style="bold cyan",
        border_style="dim",
        row_styles=["", "dim"],
    )

    for name, style, justify in columns:
        table.add_column(name, style=style, justify=justify)

    return table


def print_loop_result(result: LoopResult, title: str | None = None):
    """Print the chosen loop in a styled panel."""
    content = Text()
    content.append("Start: ", style="dim")
    content.append(format_time(result.start), style="green bold")
    content.append(" → ", style="dim")
    content.append("End: ", style="dim")
    content.append(format_time(result.end), style="green bold")
    content.append("\n")
    content.append("Duration: ", style="dim")
    content.append(format_duration(result.duration), style="cyan")
    content.append(" │ ", style="dim")
    content.append("Bars: ", style="dim")
    content.append(f"{result.bars:g}", style="cyan")
    content.append(" │ ", style="dim")
    content.append("Tempo: ", style="dim")
    content.append(f"{result.bpm:.0f} BPM" if result.bpm else "n/a", style="cyan")
    content.append("\n")
    content.append("Confidence: ", style="dim")
    content.append(f"{result.confidence:.1%}", style=score_to_style(result.confidence))
    content.append(" │ ", style="dim")
    content.append("Method: ", style="dim")
    outcome = result.outcome.value
    content.append(outcome, style=_OUTCOME_STYLES.get(outcome, "white"))

    panel = Panel(
        content,
        title=title,
        box=ROUNDED,
        border_style=_OUTCOME_STYLES.get(outcome, "green"),
    )
    rich_console.print(panel)


def print_candidates_table(candidates: list[LoopCandidate], title: str):
    table = create_results_table(
        title,
        [
            ("#", "cyan", "right"),
            ("Start", "green", "left"),
            ("End", "green", "left"),
            ("Duration", "magenta", "right"),
            ("Bars", "white", "right"),
            ("Confidence", "", "right"),
            ("Correlation", "dim", "right"),
            ("Strategy", "yellow", "left"),
        ],
    )

    for idx, c in enumerate(candidates):
        table.add_row(
            str(idx),
            format_time(c.start),
            format_time(c.end),
            format_duration(c.duration),
            f"{c.musical_division:g}",
            format_score(c.confidence),
            f"{c.correlation:.4f}",
            c.strategy,
        )

    rich_console.print(table)


def print_validation(validation: LoopValidation):
    if validation.error:
        print_status(validation.error, "error")
        return

    status = "success" if validation.is_seamless else "warning"
    label = "Seamless" if validation.is_seamless else "Audible seam likely"
    print_status(f"{label}: score {validation.score:.1%}", status)
    rich_console.print(
        f"  [dim]Amplitude:[/] {validation.amplitude_score:.2%} "
        f"[dim]│ Correlation:[/] {validation.correlation:.4f}"
    )


# ============================================================================
# CLI HELP STYLING
# ============================================================================

_basic_options = ["--path", "--json"]
_loop_options = [
    "--min-duration",
    "--max-duration",
    "--confidence-threshold",
    "--refine-start",
    "--align-zero-crossings",
]


def _option_groups(additional_basic_options=None):
    if additional_basic_options is not None:
        combined_basic_options = _basic_options + additional_basic_options
    else:
        combined_basic_options = _basic_options
    return [
        {
            "name": "Basic options",
            "options": combined_basic_options,
        },
        {
            "name": "Loop options",
            "options": _loop_options,
        },
    ]


_OPTION_GROUPS = {
    "pyseamloop analyze": _option_groups(),
    "pyseamloop candidates": _option_groups(["--top"]),
    "pyseamloop validate": _option_groups(["--start", "--end"]),
}

_COMMAND_GROUPS = {
    "pyseamloop": [
        {
            "name": "Analysis Commands",
            "commands": [
                "analyze",
                "candidates",
                "validate",
            ],
        },
    ]
}
