import logging

import pytest
from rich.logging import RichHandler

import mapgallery
from mapgallery import logging_config


@pytest.fixture
def restore_logging():
    root, pkg = logging.getLogger(), logging.getLogger("mapgallery")
    saved = root.handlers[:], root.level, pkg.level
    quiet = {name: logging.getLogger(name).level for name in logging_config.QUIET_LOGGERS}
    yield
    root.handlers[:], level, pkg_level = saved
    root.setLevel(level)
    pkg.setLevel(pkg_level)
    for name, lvl in quiet.items():
        logging.getLogger(name).setLevel(lvl)


def test_working_dirs_live_under_project_root():
    root = mapgallery.PROJECT_ROOT
    assert root.is_absolute()
    for p in (mapgallery.DATA_DIR, mapgallery.INPUT_DIR, mapgallery.OUTPUT_DIR):
        assert p.parent == root
        assert p.is_dir()


def test_sample_stations_shipped():
    header = (mapgallery.INPUT_DIR / "stations.csv").read_text().splitlines()[0]
    assert header == "name,long,lat"


def test_configure_installs_single_rich_handler(restore_logging):
    logging_config.configure("debug")
    logging_config.configure("info")

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1 and isinstance(handlers[0], RichHandler)
    assert logging.getLogger("mapgallery").level == logging.INFO


def test_configure_keeps_http_chatter_quiet(restore_logging):
    logging_config.configure("DEBUG")
    assert logging.getLogger("mapgallery").level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_configure_rejects_unknown_level():
    with pytest.raises(ValueError, match="CHATTY"):
        logging_config.configure("chatty")
