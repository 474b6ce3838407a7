"""Tests for outlet / HQ authentication."""

import pytest

from src.agents.sheets_client import HQ, OUTLET, SheetDirectory
from src.core.auth import (INVALID_CREDENTIALS, MISSING_FIELDS, UserProfile,
                           authenticate)


@pytest.fixture
def directory():
    return SheetDirectory("sheet123")


STATIC_TRIPLES = [
    ("JKJSTT1", "Alpro@123", OUTLET, "JKJSTT1", "Jakarta Selatan Store", "Account Manager 1"),
    ("BEKASI1", "Alpro@123", OUTLET, "BEKASI1", "Bekasi Central Store", "Account Manager 2"),
    ("DEMO", "demo123", OUTLET, "DEMO", "Demo Store", "Demo Manager"),
    ("eni.khuzaimah@apotekalpro.id", "Alpro@123", HQ, "Eni Khuzaimah", "Eni Khuzaimah",
     "Marketing Director"),
    ("demo@apotekalpro.id", "demo123", HQ, "Demo User", "Demo User", "Demo Role"),
]


class TestStaticTable:
    @pytest.mark.parametrize("username,password,login_type,display,store,am", STATIC_TRIPLES)
    def test_every_static_account_logs_in(self, directory, username, password, login_type,
                                          display, store, am):
        result = authenticate(username, password, login_type, directory)
        assert result.success
        user = result.user.to_dict()
        assert user["type"] == login_type
        assert user["displayName"] == display
        assert user["fullStoreName"] == store
        assert user["am"] == am
        assert user["source"] == "static"

    @pytest.mark.parametrize("username,password,login_type", [
        ("DEMO", "wrong", OUTLET),
        ("NOPE", "demo123", OUTLET),
        ("DEMO", "demo123", HQ),
        ("demo@apotekalpro.id", "demo123", OUTLET),
        ("DEMO", "Demo123", OUTLET),
        ("DEMO", "demo123", "admin"),
    ])
    def test_misses_share_one_message(self, directory, username, password, login_type):
        result = authenticate(username, password, login_type, directory)
        assert not result.success
        assert result.message == INVALID_CREDENTIALS
        assert result.to_dict() == {"success": False, "message": INVALID_CREDENTIALS}

    def test_demo_outlet_profile(self, directory):
        result = authenticate("DEMO", "demo123", OUTLET, directory)
        assert result.to_dict()["user"]["displayName"] == "DEMO"
        assert result.to_dict()["user"]["type"] == "outlet"

    def test_username_case_and_whitespace(self, directory):
        assert authenticate("  demo ", " demo123 ", OUTLET, directory).success
        assert authenticate("DEMO@APOTEKALPRO.ID", "demo123", HQ, directory).success

    @pytest.mark.parametrize("username,password", [("", "x"), ("DEMO", ""), ("   ", "  "),
                                                   (None, None)])
    def test_missing_fields(self, directory, username, password):
        result = authenticate(username, password, OUTLET, directory)
        assert not result.success
        assert result.message == MISSING_FIELDS


class TestSheetRows:
    def test_sheet_outlet_login(self, directory, sheets_online):
        result = authenticate("tgr01", "Tgr#2024", OUTLET, directory)
        assert result.success
        assert result.user.source == "sheets"
        assert result.user.full_store_name == "Tangerang Store"
        assert result.user.am == "Budi Santoso"

    def test_sheet_hq_login_maps_role_to_am(self, directory, sheets_online):
        result = authenticate("sari.dewi@apotekalpro.id", "Sari#2024", HQ, directory)
        assert result.success
        assert result.user.role == "Brand Manager"
        assert result.user.am == "Brand Manager"
        assert result.user.email == "sari.dewi@apotekalpro.id"

    def test_inactive_hq_row_rejected(self, directory, sheets_online):
        result = authenticate("old@apotekalpro.id", "Old#2024", HQ, directory)
        assert result.message == INVALID_CREDENTIALS

    def test_static_still_works_with_sheet_online(self, directory, sheets_online):
        assert authenticate("DEMO", "demo123", OUTLET, directory).user.source == "static"


class TestUserProfile:
    def test_round_trip(self):
        user = UserProfile(HQ, "Demo User", "Demo User", "Demo Role", "demo@apotekalpro.id",
                           "Demo Role")
        assert UserProfile.from_dict(user.to_dict()) == user

    def test_from_dict_rejects_unknown_type(self):
        assert UserProfile.from_dict({"type": "admin"}) is None
        assert UserProfile.from_dict(None) is None
