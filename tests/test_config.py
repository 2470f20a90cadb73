"""
Tests for settings.
"""

from __future__ import annotations

from gazette_watch.config import PROJECT_ROOT, Settings


def test_link_database_found_from_server_dir(monkeypatch):
    monkeypatch.chdir(PROJECT_ROOT / "server")

    path = Settings().link_database_file

    assert path.samefile(PROJECT_ROOT / "data" / "adminlist-links.json")


def test_link_database_found_from_elsewhere(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    path = Settings().link_database_file

    assert path.samefile(PROJECT_ROOT / "data" / "adminlist-links.json")


def test_local_link_database_wins(monkeypatch, tmp_path):
    local = tmp_path / "data" / "adminlist-links.json"
    local.parent.mkdir()
    local.write_text("[]")
    monkeypatch.chdir(tmp_path)

    assert Settings().link_database_file.samefile(local)


def test_absolute_link_database_path(tmp_path):
    target = tmp_path / "links.json"
    assert Settings(link_database_path=str(target)).link_database_file == target
