"""Tests for the command-line entry point."""

import logging
import os
import tempfile

import pytest
import yaml

from talent_engine.main import main, parse_args


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_data = {
            "database": {"url": f"sqlite:///{os.path.join(tmpdir, 'data', 'talent.db')}"},
            "log_dir": os.path.join(tmpdir, "logs"),
        }
        config_path = os.path.join(tmpdir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(config_data, f)
        yield tmpdir, config_path
        # Release the rotating file handler before the directory goes away
        for handler in list(logging.getLogger("talent_engine").handlers):
            handler.close()
        logging.getLogger("talent_engine").handlers.clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.config == "config.yaml"
        assert not args.stats
        assert args.search is None
        assert args.page == 0

    def test_search_options(self):
        args = parse_args(["--search", "python", "--looking-for-work", "--page", "2", "--page-size", "5"])
        assert args.search == "python"
        assert args.looking_for_work
        assert args.page == 2
        assert args.page_size == 5


class TestMain:
    def test_missing_config_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "nonexistent.yaml"])
        assert exc_info.value.code == 1

    def test_invalid_scale_exits(self, workdir):
        tmpdir, _ = workdir
        bad_config = os.path.join(tmpdir, "bad.yaml")
        with open(bad_config, "w", encoding="utf-8") as f:
            yaml.dump({"matching": {"assessment_scale_max": 0}}, f)
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", bad_config])
        assert exc_info.value.code == 1

    def test_init_db_then_stats(self, workdir, capsys):
        tmpdir, config_path = workdir
        main(["--config", config_path, "--init-db"])
        assert os.path.exists(os.path.join(tmpdir, "data", "talent.db"))

        main(["--config", config_path, "--stats"])
        assert "Talent profiles: 0" in capsys.readouterr().out

    def test_search_on_empty_database(self, workdir, capsys):
        _, config_path = workdir
        main(["--config", config_path, "--init-db"])
        main(["--config", config_path, "--search", "python"])
        assert "0 candidates" in capsys.readouterr().out

    def test_invalid_page_exits(self, workdir):
        _, config_path = workdir
        main(["--config", config_path, "--init-db"])
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", config_path, "--search", "x", "--page", "-1"])
        assert exc_info.value.code == 1

    def test_nothing_to_do(self, workdir):
        _, config_path = workdir
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", config_path])
        assert exc_info.value.code == 2
