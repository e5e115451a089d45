import os
from pathlib import Path

from ytpro.download_list import DownloadList, guess_recent_files


def test_download_list_appends_lines(tmp_path: Path) -> None:
    listing = DownloadList(tmp_path / "run" / "downloaded_files.txt")
    listing.reset()
    listing.append("/videos/a.mp4")
    listing.append("/videos/b.webm")
    assert listing.path.read_text(encoding="utf-8") == "/videos/a.mp4\n/videos/b.webm\n"
    assert listing.load() == [Path("/videos/a.mp4"), Path("/videos/b.webm")]


def test_download_list_reset_truncates(tmp_path: Path) -> None:
    listing = DownloadList(tmp_path / "downloaded_files.txt")
    listing.append("old.mp4")
    listing.reset()
    assert listing.load() == []


def test_download_list_missing_file(tmp_path: Path) -> None:
    assert DownloadList(tmp_path / "nope.txt").load() == []


def test_guess_recent_files_orders_newest_first(tmp_path: Path) -> None:
    names = ["old.mp4", "mid.mp4", "new.mp4", ".hidden.mp4"]
    for offset, name in enumerate(names):
        path = tmp_path / name
        path.write_text("x", encoding="utf-8")
        os.utime(path, (1_000_000 + offset, 1_000_000 + offset))
    nested = tmp_path / "sub"
    nested.mkdir()
    (nested / "deep.mp4").write_text("x", encoding="utf-8")
    os.utime(nested / "deep.mp4", (900_000, 900_000))

    recent = guess_recent_files(tmp_path, limit=3)
    assert [path.name for path in recent] == ["new.mp4", "mid.mp4", "old.mp4"]
