import functools
import logging
import os
import warnings

import rich_click as click
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TimeElapsedColumn
from rich.traceback import install as rich_traceback_handler

from pyseamloop import __version__
from pyseamloop.analysis import LoopOptions, analyze_loop, find_loop_candidates, validate_loop
from pyseamloop.analysis.candidates import rank_candidates
from pyseamloop.audio import load_signal
from pyseamloop.console import (
    _COMMAND_GROUPS,
    _OPTION_GROUPS,
    print_candidates_table,
    print_loop_result,
    print_status,
    print_validation,
    rich_console,
)
from pyseamloop.exceptions import AudioLoadError, InvalidInputError

# CLI --help styling
click.rich_click.OPTION_GROUPS = _OPTION_GROUPS
click.rich_click.COMMAND_GROUPS = _COMMAND_GROUPS
click.rich_click.USE_RICH_MARKUP = True
# End CLI styling


@click.group("pyseamloop")
@click.option("--debug", "-d", is_flag=True, default=False, help="Enables debugging mode.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enables verbose logging output.")
@click.version_option(__version__, prog_name="pyseamloop", message="%(prog)s %(version)s")
def cli_main(debug, verbose):
    """Find the best seamless loop in a piece of music."""
    # Store flags in environ instead of passing them as parameters
    if debug:
        os.environ["PSL_DEBUG"] = "1"
        warnings.simplefilter("default")
        rich_traceback_handler(console=rich_console, suppress=[click])
    else:
        warnings.filterwarnings("ignore")

    if verbose:
        logging.basicConfig(format="%(message)s", level=logging.INFO, handlers=[RichHandler(level=logging.INFO, console=rich_console, rich_tracebacks=True, show_path=debug, show_time=False, tracebacks_suppress=[click])])
    else:
        logging.basicConfig(format="%(message)s", level=logging.ERROR, handlers=[RichHandler(level=logging.ERROR, console=rich_console, show_time=False, show_path=False)])


def common_path_options(f):
    @click.option("--path", type=click.Path(exists=True, dir_okay=False), required=True, help="Path to the audio file.")
    @click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON instead of a styled panel.")

    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def common_loop_options(f):
    @click.option("--min-duration", type=click.FloatRange(min=0, min_open=True), default=0.5, show_default=True, help="The minimum loop duration in seconds.")
    @click.option("--max-duration", type=click.FloatRange(min=0, min_open=True), default=8.0, show_default=True, help="The maximum loop duration in seconds.")
    @click.option("--confidence-threshold", type=float, default=0.5, show_default=True, help="Minimum repetition score for a precisely repeating loop to be accepted.")
    @click.option("--refine-start", is_flag=True, default=False, help="Nudge a precisely repeating loop onto the nearest attack.")
    @click.option("--align-zero-crossings", is_flag=True, default=False, help="Snap the final loop points to nearby zero crossings. [dim](click-free playback)[/]")

    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def _loop_options(kwargs) -> LoopOptions:
    return LoopOptions.resolve(
        min_duration=kwargs["min_duration"],
        max_duration=kwargs["max_duration"],
        confidence_threshold=kwargs["confidence_threshold"],
        refine_start=kwargs["refine_start"],
        align_to_zero_crossings=kwargs["align_zero_crossings"],
    )


def _run_with_progress(fn, *args, quiet=False, **kwargs):
    if quiet:
        return fn(*args, **kwargs)

    with Progress(
        SpinnerColumn(),
        *Progress.get_default_columns(),
        TimeElapsedColumn(),
        console=rich_console,
        transient=True,
    ) as progress:
        progress.add_task("Processing", total=None)
        return fn(*args, **kwargs)


@cli_main.command()
@common_path_options
@common_loop_options
def analyze(path, as_json, **kwargs):
    """Find the best loop in an audio file."""
    try:
        options = _loop_options(kwargs)
        signal = load_signal(path)
        result = _run_with_progress(analyze_loop, signal, options, quiet=as_json)

        if as_json:
            rich_console.print_json(data=result.to_dict())
        else:
            print_loop_result(result, title=os.path.basename(path))

    except (AudioLoadError, InvalidInputError) as e:
        print_exception(e)
        raise SystemExit(1)


@cli_main.command()
@common_path_options
@common_loop_options
@click.option("--top", type=click.IntRange(min=1), default=10, show_default=True, help="Number of candidates to display, ranked by confidence.")
def candidates(path, as_json, top, **kwargs):
    """List the scored loop candidates of an audio file, skipping the precise search."""
    try:
        options = _loop_options(kwargs)
        signal = load_signal(path)
        found = _run_with_progress(find_loop_candidates, signal, options, quiet=as_json)
        ranked = rank_candidates(found)[:top]

        if as_json:
            rich_console.print_json(data=[c.to_dict() for c in ranked])
        elif not ranked:
            print_status("No loop candidates found.", "warning")
        else:
            print_candidates_table(ranked, title=f"Top {len(ranked)} of {len(found)} candidates for \"{os.path.basename(path)}\"")

    except (AudioLoadError, InvalidInputError) as e:
        print_exception(e)
        raise SystemExit(1)


@cli_main.command()
@click.option("--path", type=click.Path(exists=True, dir_okay=False), required=True, help="Path to the audio file.")
@click.option("--start", type=click.FloatRange(min=0), required=True, help="Loop start in seconds.")
@click.option("--end", type=click.FloatRange(min=0), required=True, help="Loop end in seconds.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
def validate(path, start, end, as_json):
    """Check how seamlessly a given loop wraps around."""
    try:
        signal = load_signal(path)
        validation = validate_loop(signal, start, end)

        if as_json:
            rich_console.print_json(data=validation.to_dict())
        else:
            print_validation(validation)

    except (AudioLoadError, InvalidInputError) as e:
        print_exception(e)
        raise SystemExit(1)


def print_exception(e: Exception):
    if "PSL_DEBUG" in os.environ:
        rich_console.print_exception(suppress=[click])
    else:
        logging.error(e)


if __name__ == "__main__":
    cli_main()
