from __future__ import annotations
import logging
import signal
import sys
import threading
from typing import Optional
import typer
from rich.console import Console
from rich.logging import RichHandler
from . import __version__
from .config import TailConfig, load_config
from .engine import Follower
from .output import ConsoleSink
from .sources.file_follow import FileSource, open_file
from .sources.file_tail import read_last_lines, read_stream_tail

app = typer.Typer(
    help="tailsieve - print the end of a file and follow it, optionally sieving new lines",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console(highlight=False)
err_console = Console(stderr=True)

log = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tailsieve {__version__}")
        raise typer.Exit()


def _error(message: str, title: str = "Error") -> None:
    err_console.print(f"[bold red]{title}:[/bold red] {message}", style="red")


def _install_stop_handlers(stop: threading.Event) -> dict:
    """Turn SIGINT/SIGTERM into a stop request checked between polls."""
    if threading.current_thread() is not threading.main_thread():
        return {}
    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, lambda *_: stop.set())
    return previous


def _restore_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _follow(source: FileSource, sink: ConsoleSink, settings: TailConfig, offset: int, remainder: bytes) -> None:
    stop = threading.Event()
    follower = Follower(
        source,
        sink,
        offset=offset,
        remainder=remainder,
        sieve=settings.sieve,
        poll_interval=settings.poll_interval,
        max_line_bytes=settings.max_line_bytes,
        stop=stop,
    )
    previous = _install_stop_handlers(stop)
    try:
        follower.run()
    except KeyboardInterrupt:
        pass
    except OSError as e:
        _error(str(e))
        raise typer.Exit(1)
    finally:
        _restore_handlers(previous)

    # last partial line, so it is not lost on exit
    follower.flush()
    log.debug("stopped following %s", source.name)


def _tail_stdin(settings: TailConfig) -> None:
    if settings.follow_enabled:
        log.warning("follow mode is not supported on standard input; printing tail only")
    result = read_stream_tail(sys.stdin.buffer, settings.num_lines)
    sink = ConsoleSink(console)
    for line in result.lines:
        sink.write(line)
    if result.remainder:
        sink.write(result.remainder)


@app.command()
def tail(
    file: str = typer.Argument(..., help="Path of the file to tail/follow ('-' for standard input)"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Follow the file for appended lines"),
    sieve: str = typer.Option("", "--sieve", "-s", help="Only show new lines containing this text (implies --follow)"),
    num_lines: Optional[int] = typer.Option(None, "--num-lines", "-n", min=0, help="Number of lines from the end to print [default: 5]"),
    poll_interval: Optional[float] = typer.Option(None, "--poll", min=0.001, help="Polling interval seconds for follow mode [default: 0.2]"),
    max_line_bytes: Optional[int] = typer.Option(None, "--max-line-bytes", min=1, help="Emit an unterminated line once it grows past this size"),
    no_color: bool = typer.Option(False, "--no-color", help="Do not highlight sieve matches"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a YAML file with default options"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
    version: bool = typer.Option(False, "--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit"),
):
    """
    Print the last lines of FILE and optionally follow it.

    With --sieve, only appended lines containing the given text are shown;
    the initial tail is always printed unfiltered.
    """
    _setup_logging(verbose)

    try:
        base = load_config(config) if config else TailConfig()
    except FileNotFoundError as e:
        _error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        _error(str(e), title="Configuration Error")
        raise typer.Exit(1)

    settings = base.merged(
        num_lines=num_lines,
        follow=follow or None,
        sieve=sieve or None,
        poll_interval=poll_interval,
        max_line_bytes=max_line_bytes,
        color=False if no_color else None,
    )

    if file == "-":
        _tail_stdin(settings)
        return

    try:
        handle = open_file(file)
    except OSError as e:
        _error(str(e))
        raise typer.Exit(1)

    with FileSource(file, handle) as source:
        try:
            result = read_last_lines(handle, settings.num_lines, max_line_bytes=settings.max_line_bytes)
        except OSError as e:
            _error(f"Read failed on {file}: {e}")
            raise typer.Exit(1)

        sink = ConsoleSink(console, sieve=settings.sieve, color=settings.color)
        for line in result.lines:
            sink.write(line, highlight=False)

        if not settings.follow_enabled:
            if result.remainder:
                sink.write(result.remainder, highlight=False)
            return

        _follow(source, sink, settings, result.offset, result.remainder)
