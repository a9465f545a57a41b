"""Tests for the command-line front end."""

import pytest

from conftest import Packed, build_archive
from meiunpack import cli
from meiunpack.utils.config import Config, LoggingConfig


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "load_config", lambda: Config(logging=LoggingConfig(log_to_file=False)))


def test_info(write_archive, sample_files, capsys):
    path = write_archive(build_archive(sample_files))

    assert cli.main(["-i", str(path)]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "3.11 (python311.dll)" in out
    assert "lib/helper.py" in out
    assert "main.pyc" in out


def test_unpack(write_archive, sample_files, tmp_path, capsys):
    path = write_archive(build_archive(sample_files))
    out_dir = tmp_path / "out"

    assert cli.main(["-c", "2", "-u", str(path), str(out_dir)]) == cli.EXIT_OK
    assert (out_dir / "data" / "blob.bin").read_bytes() == sample_files[2].data
    assert "Successfully extracted" in capsys.readouterr().out


def test_unpack_default_output_dir(write_archive, sample_files, tmp_path, monkeypatch):
    path = write_archive(build_archive(sample_files))
    monkeypatch.chdir(tmp_path)

    assert cli.main(["-u", str(path)]) == cli.EXIT_OK
    assert (tmp_path / "unpacked" / "PYZ-00.pyz").is_file()


def test_unpack_only(write_archive, sample_files, tmp_path):
    path = write_archive(build_archive(sample_files))
    out_dir = tmp_path / "out"

    assert cli.main(["-u", str(path), str(out_dir), "--only", "main.pyc"]) == cli.EXIT_OK
    assert [p.name for p in out_dir.rglob('*') if p.is_file()] == ["main.pyc"]


def test_partial_success(write_archive, tmp_path, capsys):
    files = [Packed("ok", b"ok"), Packed("bad", b"x" * 10, stored=b"garbage")]
    path = write_archive(build_archive(files))

    assert cli.main(["-u", str(path), str(tmp_path / "out")]) == cli.EXIT_PARTIAL
    assert "Skipped bad" in capsys.readouterr().out


def test_nothing_recovered(write_archive, tmp_path):
    files = [Packed("bad", b"x" * 10, stored=b"garbage")]
    path = write_archive(build_archive(files))
    assert cli.main(["-u", str(path), str(tmp_path / "out")]) == cli.EXIT_FAILURE


def test_not_an_archive(write_archive):
    path = write_archive(b'\x00' * 1000)
    assert cli.main(["-i", str(path)]) == cli.EXIT_FAILURE


def test_missing_file(tmp_path):
    assert cli.main(["-u", str(tmp_path / "missing.exe")]) == cli.EXIT_FAILURE


def test_mode_is_required(write_archive, sample_files):
    path = write_archive(build_archive(sample_files))
    with pytest.raises(SystemExit) as exc_info:
        cli.main([str(path)])
    assert exc_info.value.code == 2


def test_info_and_unpack_are_exclusive(write_archive, sample_files):
    path = write_archive(build_archive(sample_files))
    with pytest.raises(SystemExit):
        cli.main(["-i", "-u", str(path)])


def test_too_small_search_chunk_falls_back(write_archive, sample_files, monkeypatch, capsys):
    config = Config(logging=LoggingConfig(log_to_file=False))
    config.extract.search_chunk_size = 4
    monkeypatch.setattr(cli, "load_config", lambda: config)
    path = write_archive(build_archive(sample_files))

    assert cli.main(["-i", str(path)]) == cli.EXIT_OK
    assert "main.pyc" in capsys.readouterr().out
