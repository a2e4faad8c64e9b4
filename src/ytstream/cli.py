"""CLI interface for ytstream."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ytstream import __version__
from ytstream.config import load_config, merge_config
from ytstream.formats import FormatError
from ytstream.stream import (
    LiveStream,
    StreamDescriptor,
    StreamError,
    StreamOptions,
    describe,
    stream_from_info,
)
from ytstream.utils import format_date, format_size, format_timestamp
from ytstream.video import VideoError, VideoMetadata, get_video_info, load_video_info

console = Console()


def setup_logging(verbose: bool) -> None:
    """Route log records through rich; debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def print_descriptor(metadata: VideoMetadata, descriptor: StreamDescriptor) -> None:
    """Print a human-readable summary of a resolved stream."""
    details = metadata.details
    if details.title:
        console.print(f"  [dim]Title:[/] {escape(details.title)}")
    if details.channel:
        console.print(f"  [dim]Channel:[/] {escape(details.channel)}")
    uploaded = format_date(details.upload_date)
    if uploaded:
        console.print(f"  [dim]Uploaded:[/] {uploaded}")

    if isinstance(descriptor, LiveStream):
        console.print("[green]✓[/] Live broadcast")
        console.print(f"  [dim]Manifest:[/] {descriptor.manifest_url}")
        if descriptor.target_duration_sec is not None:
            console.print(f"  [dim]Segment length:[/] {descriptor.target_duration_sec:g}s")
        return

    console.print(f"[green]✓[/] Audio stream ({descriptor.type.value})")
    console.print(f"  [dim]Duration:[/] {format_timestamp(descriptor.duration_in_sec)}")
    console.print(f"  [dim]Size:[/] {format_size(descriptor.content_length)}")
    console.print(f"  [dim]URL:[/] {descriptor.url}", soft_wrap=True)


@click.command()
@click.argument('url', required=False)
@click.option(
    '--info-json',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Resolve from a saved `yt-dlp --dump-json` file instead of fetching',
)
@click.option(
    '-q', '--quality',
    type=int,
    help='Audio quality index, 0 = lowest (default: highest available)',
)
@click.option(
    '--proxy',
    multiple=True,
    help='Proxy URL for metadata requests (repeatable)',
)
@click.option(
    '--timeout',
    type=float,
    help='Seconds to wait for metadata extraction (default: 60)',
)
@click.option(
    '--config',
    'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Config file (default: ~/.ytstream.yml)',
)
@click.option(
    '--json',
    'as_json',
    is_flag=True,
    help='Print the stream descriptor as JSON',
)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Verbose output',
)
@click.version_option(version=__version__)
def main(
    url: str | None,
    info_json: Path | None,
    quality: int | None,
    proxy: tuple[str, ...],
    timeout: float | None,
    config_path: Path | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Resolve a YouTube video into a playable audio stream.

    Picks the audio rendition matching --quality (or the best one) and
    prints its direct URL and stream type. Live broadcasts resolve to
    their manifest URL instead.

    Example:

        ytstream "https://www.youtube.com/watch?v=dQw4w9WgXcQ" -q 0
    """
    if bool(url) == bool(info_json):
        raise click.UsageError("Provide exactly one of URL or --info-json.")

    setup_logging(verbose)

    try:
        file_config, _ = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    config = merge_config(file_config, {
        "quality": quality,
        "proxy": list(proxy) or None,
        "timeout": timeout,
    })

    try:
        options = StreamOptions(quality=config["quality"], proxy=tuple(config["proxy"]))
    except TypeError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    # 1. Get video metadata
    with console.status("[bold blue]Fetching video metadata...", spinner="dots"):
        try:
            if info_json:
                metadata = load_video_info(info_json)
            else:
                first_proxy = options.proxy[0] if options.proxy else None
                metadata = get_video_info(url, proxy=first_proxy, timeout=config["timeout"])
        except VideoError as e:
            console.print(f"[red]✗[/] {escape(str(e))}")
            raise click.ClickException(str(e))

    # 2. Resolve the stream
    try:
        descriptor = stream_from_info(metadata, options)
    except (FormatError, StreamError) as e:
        console.print(f"[red]✗[/] {escape(str(e))}")
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(describe(descriptor), indent=2))
        return

    console.print("[green]✓[/] Fetched video metadata")
    print_descriptor(metadata, descriptor)


if __name__ == '__main__':
    main()
