import pytest

from helpers import SECRET
from pdf_compressor.config import RuntimeConfig
from pdf_compressor.factory import create_app


@pytest.fixture
def tmp_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def config(tmp_dir):
    return RuntimeConfig(
        shared_secret=SECRET,
        max_file_size=64 * 1024,
        tmp_dir=str(tmp_dir),
        pdf_precheck_enabled=False,
    )


@pytest.fixture
def app(config):
    flask_app = create_app(config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
