"""
Shared pytest fixtures for the BPT portal test suite.

IMPORTANT: PORTAL_DATA_DIR and PORTAL_SKIP_LOGGING_SETUP are set BEFORE any
project import, so importing app.py neither touches the repo data/ dir nor
reconfigures logging.
"""
import os
import sys
import tempfile
from urllib.parse import quote

import pytest
import requests

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

os.environ.setdefault("PORTAL_DATA_DIR", tempfile.mkdtemp(prefix="portal-test-"))
os.environ.setdefault("PORTAL_SKIP_LOGGING_SETUP", "true")


# ── Fake Google Sheets CSV export ─────────────────────────────────────────────

OUTLET_CSV = """Short Store Name,Store Name,AM,Password
"TGR01","Tangerang Store","Budi Santoso","Tgr#2024"
,,,
"BDG02","Bandung Store",,"Bdg#2024"
"""

HQ_CSV = """Name,Email,Status,Role,Date Added,Added By,Last Access,Password
"Sari Dewi","sari.dewi@apotekalpro.id","Active","Brand Manager","2024-01-02","admin","","Sari#2024"
"Old Account","old@apotekalpro.id","Inactive","Intern","2023-01-02","admin","","Old#2024"
"""


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSheets:
    """Stands in for requests.get against the gviz export.

    sheets: tab name → CSV text. Unknown tabs answer 404. Set `error` to make
    every call raise it.
    """

    def __init__(self):
        self.sheets = {}
        self.error = None
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        for name, text in self.sheets.items():
            if "sheet=" + quote(name) in url:
                return FakeResponse(200, text)
        return FakeResponse(404, "")


@pytest.fixture(autouse=True)
def fake_sheets(monkeypatch):
    """No test reaches Google: the sheet is unreachable unless a test fills it."""
    fake = FakeSheets()
    fake.error = requests.ConnectionError("network disabled in tests")
    from src.agents import sheets_client
    monkeypatch.setattr(sheets_client.requests, "get", fake.get)
    return fake


@pytest.fixture
def sheets_online(fake_sheets):
    fake_sheets.error = None
    fake_sheets.sheets = {"Outlet Login": OUTLET_CSV, "HQ Login": HQ_CSV}
    return fake_sheets


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture
def temp_data_dir(tmp_path):
    data = str(tmp_path / "data")
    os.makedirs(data, exist_ok=True)
    return data


# ── Flask test client ─────────────────────────────────────────────────────────

@pytest.fixture
def settings():
    from src.core.settings import Settings
    return Settings(env={}, secret_key="test-secret")


@pytest.fixture
def app(settings):
    """Create Flask app configured for testing."""
    from app import create_app
    _app = create_app(settings)
    _app.config["TESTING"] = True
    return _app


@pytest.fixture
def client(app):
    """Test client logged in as the DEMO outlet."""
    with app.test_client() as c:
        r = c.post("/api/login", json={"username": "DEMO", "password": "demo123",
                                       "loginType": "outlet"})
        assert r.get_json()["success"] is True
        yield c


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c
