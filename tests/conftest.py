import os
import pathlib
import sys

import pytest
import reportlab
from PIL import Image

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from confportal.app import create_app, db

VERA_TTF = os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def font_path():
    return VERA_TTF


@pytest.fixture
def template_path(tmp_path):
    path = tmp_path / "certificate_template.jpg"
    Image.new("RGB", (1200, 900), "white").save(path, format="JPEG")
    return str(path)


@pytest.fixture
def app(monkeypatch, tmp_path, template_path):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("SITE_ROOT", str(tmp_path / "srv"))
    monkeypatch.setenv("CERT_TEMPLATE_PATH", template_path)
    monkeypatch.setenv("CERT_DECORATIVE_FONT_PATH", VERA_TTF)
    monkeypatch.setenv("CERT_FALLBACK_FONT_PATH", VERA_TTF)
    application = create_app()
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()