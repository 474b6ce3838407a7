"""Tests for the local profile store and the terminal login script."""

import importlib.util
import json
import os

import pytest

from src.agents.sheets_client import HQ, SheetDirectory
from src.core.auth import UserProfile
from src.core.profile_store import STORAGE_KEY, LocalProfileStore
from src.core.whatsapp import LaunchResult, FallbackPanel

_SCRIPT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
                       "scripts", "portal_login.py")


def _load_cli():
    spec = importlib.util.spec_from_file_location("portal_login", _SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def store(temp_data_dir):
    return LocalProfileStore(os.path.join(temp_data_dir, "local_profile.json"))


class TestLocalProfileStore:
    def test_save_load_clear(self, store):
        user = UserProfile(HQ, "Demo User", "Demo User", "Demo Role",
                           "demo@apotekalpro.id", "Demo Role")
        store.save(user)
        assert store.load() == user
        assert store.clear()
        assert store.load() is None
        assert not store.clear()

    def test_single_storage_key(self, store):
        store.save(UserProfile("outlet", "DEMO", "Demo Store", "Demo Manager"))
        with open(store.path) as f:
            data = json.load(f)
        assert list(data) == [STORAGE_KEY]
        assert json.loads(data[STORAGE_KEY])["displayName"] == "DEMO"

    def test_corrupt_file_reads_as_logged_out(self, store):
        with open(store.path, "w") as f:
            f.write("{not json")
        assert store.load() is None

    def test_malformed_profile_discarded(self, store):
        with open(store.path, "w") as f:
            json.dump({STORAGE_KEY: "[1, 2"}, f)
        assert store.load() is None


class FakeLauncher:
    def __init__(self, success):
        self.success = success
        self.urls = []

    def launch(self, url, alternates=()):
        self.urls.extend([url, *alternates])
        if self.success:
            return LaunchResult(url, True, strategy="popup")
        return LaunchResult(url, False, fallback=FallbackPanel(url, "6285890874888"))


class TestCli:
    def test_login_whoami_logout(self, store):
        cli = _load_cli()
        lines = []
        directory = SheetDirectory("sheet123")
        assert cli.main(["login", "demo", "demo123"], directory=directory, store=store,
                        out=lines.append) == 0
        assert lines[-1].startswith("✅ Welcome, DEMO!")
        assert cli.main(["whoami"], store=store, out=lines.append) == 0
        assert json.loads(lines[-1])["fullStoreName"] == "Demo Store"
        assert cli.main(["logout"], store=store, out=lines.append) == 0
        assert cli.main(["whoami"], store=store, out=lines.append) == 1

    def test_bad_login(self, store):
        cli = _load_cli()
        lines = []
        assert cli.main(["login", "demo@apotekalpro.id", "nope", "--type", "hq"],
                        directory=SheetDirectory("sheet123"), store=store,
                        out=lines.append) == 1
        assert lines == ["❌ Invalid credentials"]
        assert store.load() is None

    def test_whatsapp_fallback_lists_links(self, store):
        cli = _load_cli()
        lines = []
        launcher = FakeLauncher(success=False)
        assert cli.main(["whatsapp", "--phone", "0812345678"], store=store,
                        launcher=launcher, out=lines.append) == 1
        assert launcher.urls[0].startswith("https://web.whatsapp.com/send?phone=62812345678")
        assert launcher.urls[1].startswith("https://wa.me/62812345678")
        assert launcher.urls[2].startswith("https://api.whatsapp.com/send?phone=62812345678")
        assert any("tel:+6285890874888" in l for l in lines)
        assert lines[-1] == "  Phone: +62 858-9087-4888"

    def test_whatsapp_group_by_default(self, store):
        cli = _load_cli()
        launcher = FakeLauncher(success=True)
        assert cli.main(["whatsapp"], store=store, launcher=launcher, out=lambda s: None) == 0
        assert launcher.urls == ["https://chat.whatsapp.com/HukQMDMTtJjFi12x1lAty3"]
