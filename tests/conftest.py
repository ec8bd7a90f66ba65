import pytest

from epichub.server import create_app


@pytest.fixture
def client_dir(tmp_path):
    path = tmp_path / "client"
    path.mkdir()
    (path / "index.html").write_text("<h1>Hello, EPIC Hub!</h1>", encoding="utf-8")
    return path


@pytest.fixture
def app(tmp_path, client_dir):
    """Flask app with isolated upload and client directories."""
    app = create_app({
        "TESTING": True,
        "UPLOADS_DIR": str(tmp_path / "uploads"),
        "CLIENT_DIR": str(client_dir),
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["epichub"]["store"]


@pytest.fixture
def blobs(app):
    return app.extensions["epichub"]["blobs"]
