import subprocess
import sys
from pathlib import Path

import pytest

from ytpro.download_list import DownloadList
from ytpro.errors import StepFailed, YtproError
from ytpro.render import Renderer
from ytpro.ytdlp_runner import (
    BEST_FORMAT,
    DownloadRequest,
    build_download_command,
    build_formats_command,
    choose_format,
    fetch_playlist_items,
    is_video_only,
    probe_video_only,
    run_download_with_progress,
)

_FORMATS_LISTING = """\
ID  EXT   RESOLUTION FPS CH |   FILESIZE   TBR PROTO | VCODEC          ACODEC
---------------------------------------------------------------------------
140 m4a   audio only      2 |    3.21MiB  129k https | audio only      mp4a.40.2
137 mp4   1920x1080   30    |   40.12MiB 1601k https | avc1.640028     video only
18  mp4   640x360     30  2 |    8.10MiB  323k https | avc1.42001E     mp4a.40.2
"""


def _python_launcher(script: str):
    seen: list[list[str]] = []

    def launcher(command, **kwargs):
        seen.append(command)
        return subprocess.Popen([sys.executable, "-c", script], **kwargs)

    return launcher, seen


def test_build_download_command_single() -> None:
    cmd = build_download_command(DownloadRequest(url="https://youtu.be/abc123"))
    assert cmd[:3] == ["yt-dlp", "-f", BEST_FORMAT]
    assert "--no-playlist" in cmd
    assert "--playlist-items" not in cmd
    assert cmd[cmd.index("-o") + 1] == "%(title)s.%(ext)s"
    assert "--newline" in cmd
    assert "--progress" in cmd
    template = cmd[cmd.index("--progress-template") + 1]
    assert template.startswith("download:")
    assert template.count("|") == 3
    assert "before_dl:START|%(filename)s" in cmd
    assert "after_move:FILE|%(filepath)s" in cmd


def test_build_download_command_playlist(tmp_path: Path) -> None:
    request = DownloadRequest(
        url="https://www.youtube.com/playlist?list=PL1",
        format_code="137+ba",
        playlist=True,
        playlist_items="1,3,5-7,3",
        output_dir=tmp_path,
    )
    cmd = build_download_command(request)
    assert "--yes-playlist" in cmd
    assert "--progress" in cmd
    assert cmd[cmd.index("--playlist-items") + 1] == "1,3,5-7,3"
    output = cmd[cmd.index("-o") + 1]
    assert output.startswith(str(tmp_path))
    assert output.endswith("%(playlist_index)02d - %(title)s.%(ext)s")


def test_run_download_records_files_and_renders(make_console, tmp_path: Path) -> None:
    console = make_console(width=120)
    script = (
        "print('[youtube] abc: Downloading webpage')\n"
        "print('START|out/video.mp4')\n"
        "print(' 50.0%|1.0MiB/s|00:03|out/video.mp4')\n"
        "print('100.0%|1.0MiB/s|00:00|out/video.mp4')\n"
        "print('FILE|/abs/out/video.mp4')\n"
    )
    launcher, seen = _python_launcher(script)
    listing = DownloadList(tmp_path / "downloaded_files.txt")
    listing.reset()
    renderer = Renderer(console)

    produced = run_download_with_progress(
        DownloadRequest(url="https://youtu.be/abc123"),
        renderer,
        listing,
        launcher=launcher,
    )

    assert produced == ["/abs/out/video.mp4"]
    assert listing.load() == [Path("/abs/out/video.mp4")]
    assert seen[0][0] == "yt-dlp"
    assert renderer.state.percent == 100
    output = console.file.getvalue()
    assert output.count("\x1b[2A") == 3
    assert "Speed: 1.0MiB/s  ETA: 00:03" in output
    assert "Downloading: video.mp4" in output


def test_run_download_failure_is_fatal(console, tmp_path: Path) -> None:
    script = "import sys\nprint('ERROR: Video unavailable')\nsys.exit(1)\n"
    launcher, _ = _python_launcher(script)
    with pytest.raises(StepFailed, match="Video unavailable"):
        run_download_with_progress(
            DownloadRequest(url="https://youtu.be/gone"),
            Renderer(console),
            DownloadList(tmp_path / "downloaded_files.txt"),
            launcher=launcher,
        )


def test_fetch_playlist_items() -> None:
    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        assert "--flat-playlist" in command
        return subprocess.CompletedProcess(
            command, 0, stdout="001|First|3:21\n002|Second|NA\n", stderr=""
        )

    items = fetch_playlist_items("https://www.youtube.com/playlist?list=PL1", runner=runner)
    assert [item.title for item in items] == ["First", "Second"]
    assert items[0].index == "001"


def test_fetch_playlist_items_failure() -> None:
    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(command, 1, stdout="", stderr="ERROR: boom")

    with pytest.raises(YtproError, match="boom"):
        fetch_playlist_items("https://example.com/list", runner=runner)


def test_build_formats_command() -> None:
    assert build_formats_command("u") == ["yt-dlp", "-F", "u"]
    assert build_formats_command("u", 5) == ["yt-dlp", "-F", "--playlist-items", "5", "u"]


def test_is_video_only() -> None:
    assert is_video_only("137", _FORMATS_LISTING)
    assert not is_video_only("18", _FORMATS_LISTING)
    assert not is_video_only("13", _FORMATS_LISTING)
    assert not is_video_only("999", _FORMATS_LISTING)


def test_probe_video_only_uses_representative_item() -> None:
    calls: list[list[str]] = []

    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        calls.append(command)
        return subprocess.CompletedProcess(command, 0, stdout=_FORMATS_LISTING, stderr="")

    assert probe_video_only("137", "u", 5, runner=runner)
    assert calls == [["yt-dlp", "-F", "--playlist-items", "5", "u"]]


def test_probe_video_only_failure_is_not_video_only() -> None:
    def runner(command: list[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(command, 1, stdout="", stderr="boom")

    assert not probe_video_only("137", "u", 1, runner=runner)


def test_choose_format() -> None:
    assert choose_format("", False) == BEST_FORMAT
    assert choose_format("137", True) == "137+ba"
    assert choose_format(" 18 ", False) == "18"
