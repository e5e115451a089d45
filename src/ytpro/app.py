from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from .config import AppConfig, load_config, save_config
from .deps import ensure_dependencies
from .download_list import DownloadList, guess_recent_files
from .errors import YtproError
from .ffmpeg_runner import probe_duration, replace_ext, run_convert_with_progress
from .logs import setup_logging
from .paths import config_path, download_list_path, run_log_dir
from .render import Renderer
from .selection import PlaylistItem, first_from_ranges, paginate_select, playlist_items_arg
from .steps import StepRunner
from .ytdlp_runner import (
    DownloadRequest,
    choose_format,
    fetch_playlist_items,
    probe_video_only,
    run_download_with_progress,
    show_formats,
)

log = logging.getLogger(__name__)

Ask = Callable[[str], str]

APP_TITLE = "YT Pro Downloader"
RULE = "=" * 45


@dataclass(frozen=True)
class Options:
    output_dir: Path | None
    log_dir: Path | None
    format_code: str | None
    convert_format: str | None
    auto_install: bool
    page_size: int
    tail_lines: int
    bar_width: int | None


class Session:
    """One interactive run: dependencies, selection, download, conversion."""

    def __init__(self, console: Console, options: Options, ask: Ask | None = None) -> None:
        self.console = console
        self.options = options
        self.ask = ask or _prompt_ask(console)
        self.run_dir = run_log_dir(options.log_dir)
        self.renderer = Renderer(console, bar_width=options.bar_width)
        self.steps = StepRunner(console, self.run_dir, tail_lines=options.tail_lines)
        self.download_list = DownloadList(download_list_path(self.run_dir))

    def run(self) -> None:
        self.console.clear()
        self.banner()
        missing = ensure_dependencies(self.steps, auto_install=self.options.auto_install)
        if missing:
            log.info("Installed: %s", ", ".join(missing))
        self.console.print(Text("✅ All dependencies are installed.\n", style="green"))

        request = self.select_source()
        request = self.select_format(request)

        self.download_list.reset()
        self.console.print(Text("\n🚀 Starting download…", style="green"))
        run_download_with_progress(request, self.renderer, self.download_list)
        self.console.print(Text("✅ Download(s) finished.", style="green"))

        answer = self.ask("🔄 Convert file(s)? (y/n)").strip()
        if answer.lower() == "y":
            output_format = self.options.convert_format or self.ask("🎯 Enter output format").strip()
            self.convert_all(output_format)
        else:
            self.console.print(Text("✅ Download completed without conversion.", style="green"))
        self.footer()

    def select_source(self) -> DownloadRequest:
        mode = self.ask("Select download mode:\n  1) Single Video\n  2) Playlist\nEnter choice (1 or 2)").strip()
        if mode == "1":
            url = self.ask("🎯 Enter video URL").strip()
            self._status("📡 Fetching available formats…")
            show_formats(url)
            return DownloadRequest(url=url, output_dir=self.options.output_dir)
        if mode == "2":
            url = self.ask("📜 Enter playlist URL").strip()
            self._status("📡 Fetching playlist details…")
            items = fetch_playlist_items(url)
            selections = paginate_select(items, self.options.page_size, self.ask, self.show_page)
            first_item = first_from_ranges(selections[0]) if selections else 1
            self._status(f"📡 Fetching formats for playlist item {first_item}…")
            show_formats(url, first_item)
            return DownloadRequest(
                url=url,
                playlist=True,
                playlist_items=playlist_items_arg(selections),
                output_dir=self.options.output_dir,
            )
        raise YtproError("Invalid choice.")

    def select_format(self, request: DownloadRequest) -> DownloadRequest:
        code = self.options.format_code
        if code is None:
            code = self.ask("🎥 Enter format code (blank=best)").strip()
        video_only = False
        if code:
            item = first_from_ranges(request.playlist_items) if request.playlist else 1
            video_only = probe_video_only(code, request.url, item)
            if video_only:
                self.console.print(Text("🎧 Adding best audio…", style="cyan"))
        return DownloadRequest(
            url=request.url,
            format_code=choose_format(code, video_only),
            playlist=request.playlist,
            playlist_items=request.playlist_items,
            output_dir=request.output_dir,
        )

    def convert_all(self, output_format: str) -> None:
        files = self.download_list.load() or guess_recent_files(Path.cwd())
        for input_path in files:
            if not input_path.exists():
                log.info("Skipping missing file %s", input_path)
                continue
            output_path = replace_ext(input_path, output_format)
            line = Text("\nConverting: ", style="cyan")
            line.append(input_path.name, style="magenta")
            line.append(" → ")
            line.append(output_path.name, style="magenta")
            self.console.print(line)
            duration = probe_duration(input_path)
            result = run_convert_with_progress(input_path, output_path, duration, self.renderer)
            if result.ok:
                self.console.print(Text(f"✔ Converted: {output_path}", style="green"))
            else:
                self.console.print(Text(f"✖ Convert failed: {output_path}", style="red"))

    def show_page(self, page: list[PlaylistItem], start: int, total: int) -> None:
        self.console.clear()
        end = start + len(page)
        self.console.print(
            Text(f"Playlist Videos (Items {start + 1} to {end} of {total}):", style="bold cyan")
        )
        for item in page:
            line = Text(item.index, style="magenta")
            line.append(f") {item.title} ")
            line.append(f"[{item.duration}]", style="dim")
            self.console.print(line, highlight=False)
        self.console.print()
        self.console.print("n) Load next items")
        self.console.print("0) Done selecting")

    def banner(self) -> None:
        self.console.print(Text(RULE, style="cyan"))
        self.console.print(Text(f"         {APP_TITLE}", style="bold green"))
        self.console.print(Text("     Powered by yt-dlp + ffmpeg", style="yellow"))
        self.console.print(Text(f"{RULE}\n", style="cyan"))

    def footer(self) -> None:
        self.console.print(Text(f"\n{RULE}", style="cyan"))
        self.console.print(Text("   🎉 Thank you for using YT Pro!", style="bold green"))
        self.console.print(Text(RULE, style="cyan"))

    def _status(self, message: str) -> None:
        self.console.print(Text(f"\n{message}", style="yellow"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytpro",
        description="Interactive yt-dlp + ffmpeg front end with live progress.",
        epilog=f"Config file: {config_path()}",
    )
    parser.add_argument("--output-dir", help="Directory for downloaded files")
    parser.add_argument("--log-dir", help="Directory for per-run step logs")
    parser.add_argument("--format", dest="format_code", help="yt-dlp format code (skips the prompt)")
    parser.add_argument("--convert-to", dest="convert_format", help="Output format for conversion")
    parser.add_argument("--no-install", action="store_true", help="Fail instead of installing missing tools")
    parser.add_argument(
        "--save-defaults",
        action="store_true",
        help="Store --output-dir, --format, --convert-to and --no-install in the config file and exit",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return parser


def resolve_options(args: argparse.Namespace, config: AppConfig) -> Options:
    output_dir = args.output_dir or config.output_dir
    return Options(
        output_dir=Path(output_dir).expanduser() if output_dir else None,
        log_dir=Path(args.log_dir).expanduser() if args.log_dir else None,
        format_code=args.format_code if args.format_code is not None else config.default_format,
        convert_format=args.convert_format or config.convert_format,
        auto_install=config.auto_install and not args.no_install,
        page_size=config.page_size,
        tail_lines=config.tail_lines,
        bar_width=config.bar_width,
    )


def save_defaults(console: Console, config: AppConfig, options: Options, path: Path) -> None:
    updated = replace(
        config,
        output_dir=str(options.output_dir) if options.output_dir else None,
        default_format=options.format_code,
        convert_format=options.convert_format,
        auto_install=options.auto_install,
    )
    error = save_config(updated, path)
    if error:
        console.print(Text(f"✖ {error}", style="red"))
        sys.exit(1)
    console.print(Text(f"✔ Saved defaults to {path}", style="green"))


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    console = Console()
    path = config_path()
    config, error = load_config(path)
    options = resolve_options(args, config)
    if args.save_defaults:
        save_defaults(console, config, options, path)
        return

    exit_code = 0
    console.show_cursor(False)
    try:
        session = Session(console, options)
        setup_logging(console, args.verbose, session.run_dir)
        if error:
            log.warning(error)
        session.run()
    except KeyboardInterrupt:
        console.print(Text("\n⚠️  Operation cancelled by user.", style="yellow"))
        exit_code = 130
    except (YtproError, OSError) as exc:
        console.print(Text(f"✖ {exc}", style="red"))
        log.debug("Run failed", exc_info=True)
        exit_code = 1
    finally:
        console.show_cursor(True)
    if exit_code:
        sys.exit(exit_code)


def _prompt_ask(console: Console) -> Ask:
    def ask(message: str) -> str:
        return Prompt.ask(message, console=console, default="", show_default=False)

    return ask


if __name__ == "__main__":
    main()
