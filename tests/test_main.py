"""Tests for the command-line entry point."""

import json
import sys

import pytest

from rsync_backup import __main__ as cli
from rsync_backup import scheduler
from rsync_backup.markers import Marker, MarkerStore
from rsync_backup.platform_utils import WORKING_FOLDER_ENV


@pytest.fixture
def home(tmp_path, monkeypatch, restore_logging):
    folder = tmp_path / "home"
    monkeypatch.setenv(WORKING_FOLDER_ENV, str(folder))
    return folder


def _write_config(home, exit_code=0, frequency="manual") -> None:
    home.mkdir(parents=True, exist_ok=True)
    (home / "config.jsonc").write_text(
        json.dumps(
            {
                "rsyncPath": sys.executable,
                "frequency": frequency,
                "source": str(home / "src"),
                "destination": str(home / "dst"),
                "rsyncAdditionalArguments": ["-c", f"import sys; sys.exit({exit_code})"],
            }
        ),
        encoding="utf-8",
    )


def _markers(home) -> set[Marker]:
    store = MarkerStore(home)
    return {m for m in Marker if store.exists(m)}


def test_first_run_bootstraps_working_folder(home, capsys):
    assert cli.main([]) == cli.EXIT_OK
    assert (home / "config.jsonc").is_file()
    assert (home / "excludes.txt").read_text(encoding="utf-8") == ".Trash/\n.DS_Store\n"
    assert (home / "rsyncbackup.log").is_file()


def test_existing_config_is_not_overwritten(home):
    _write_config(home)
    before = (home / "config.jsonc").read_text(encoding="utf-8")
    cli.main([])
    assert (home / "config.jsonc").read_text(encoding="utf-8") == before


def test_status_output_with_default_config(home, capsys):
    cli.main([])
    out = capsys.readouterr().out.splitlines()
    assert out[0] == ":expressionless:"
    assert out[1] == "---"
    assert out[-1].startswith("Error in config: ")


def test_status_output_after_success(home, capsys):
    _write_config(home)
    assert cli.main(["--start"]) == cli.EXIT_OK
    capsys.readouterr()

    cli.main([])

    out = capsys.readouterr().out.splitlines()
    assert out[0] == ":smile:"
    assert out[2].startswith("Last backup ")
    assert out[-1].startswith("Start backup | ")


def test_status_starts_due_backup(home, monkeypatch, capsys):
    _write_config(home, frequency="1h")
    spawned = []
    monkeypatch.setattr(scheduler, "spawn_detached", spawned.append)

    cli.main([])

    assert len(spawned) == 1
    assert spawned[0][-1] == "--start"


def test_start_success(home):
    _write_config(home, exit_code=0)
    assert cli.main(["--start"]) == cli.EXIT_OK
    assert _markers(home) == {Marker.START, Marker.SUCCESS}


def test_start_failure(home):
    _write_config(home, exit_code=1)
    assert cli.main(["--start"]) == cli.EXIT_FAILED
    assert _markers(home) == {Marker.START, Marker.ERROR}


def test_start_refused_with_invalid_config(home):
    assert cli.main(["--start"]) == cli.EXIT_BAD_CONFIG
    assert _markers(home) == set()


def test_start_while_running_is_a_noop(home):
    _write_config(home)
    MarkerStore(home).touch(Marker.LOCK)

    assert cli.main(["--start"]) == cli.EXIT_OK
    assert _markers(home) == {Marker.LOCK}


def test_stop_with_nothing_running(home):
    assert cli.main(["--stop"]) == cli.EXIT_OK


def test_start_and_stop_are_exclusive(home):
    with pytest.raises(SystemExit):
        cli.main(["--start", "--stop"])
