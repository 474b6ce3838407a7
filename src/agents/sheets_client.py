"""
Google Sheets Credential Directory
Reads the Outlet Login and HQ Login tabs of the portal spreadsheet as CSV.

Primary: gviz CSV export (one request per tab)
Fallback: hard-coded static credential table

Column layout (fixed positions, no header lookup):
  Outlet Login — A=store code, B=store name, C=account manager, D=password
  HQ Login     — A=name, B=email, C=status, D=role, E=date added,
                 F=added by, G=last access, H=password

Fetched rows are cached for `cache_seconds`; a failed fetch is never cached
so the next login tries the sheet again.
"""
import csv
import io
import logging
import threading
import time
from urllib.parse import quote

import requests

log = logging.getLogger("portal.sheets")

GVIZ_CSV_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={sheet}"

OUTLET = "outlet"
HQ = "hq"


class CredentialRow:
    """One login row as it appears in the sheet. Plaintext secret, no hashing."""

    def __init__(self, key, secret, display_name, metadata=None):
        self.key = key
        self.secret = secret
        self.display_name = display_name
        self.metadata = metadata or {}

    def matches(self, username: str, password: str) -> bool:
        return bool(self.key) and self.key.lower() == username.lower() and self.secret == password

    def __repr__(self):
        return f"CredentialRow({self.key!r}, display_name={self.display_name!r})"


# Used when the sheet is unreachable or has no matching row.
STATIC_CREDENTIALS = {
    OUTLET: [
        CredentialRow("JKJSTT1", "Alpro@123", "JKJSTT1",
                      {"store_name": "Jakarta Selatan Store", "am": "Account Manager 1"}),
        CredentialRow("BEKASI1", "Alpro@123", "BEKASI1",
                      {"store_name": "Bekasi Central Store", "am": "Account Manager 2"}),
        CredentialRow("DEMO", "demo123", "DEMO",
                      {"store_name": "Demo Store", "am": "Demo Manager"}),
    ],
    HQ: [
        CredentialRow("eni.khuzaimah@apotekalpro.id", "Alpro@123", "Eni Khuzaimah",
                      {"email": "eni.khuzaimah@apotekalpro.id", "role": "Marketing Director",
                       "status": "Active"}),
        CredentialRow("demo@apotekalpro.id", "demo123", "Demo User",
                      {"email": "demo@apotekalpro.id", "role": "Demo Role", "status": "Active"}),
    ],
}


# ═══════════════════════════════════════════════════════════════
# CSV Parsing
# ═══════════════════════════════════════════════════════════════

def _clean(cell) -> str:
    return (cell or "").replace('"', "").strip()


def parse_csv(text: str) -> list:
    """Split CSV text into rows of cleaned cells, dropping the header and blank lines."""
    rows = []
    reader = csv.reader(io.StringIO(text))
    for i, row in enumerate(reader):
        if i == 0:
            continue
        cells = [_clean(c) for c in row]
        if any(cells):
            rows.append(cells)
    return rows


def parse_outlet_rows(rows: list) -> list:
    """Outlet Login: user = column A, password = column D."""
    out = []
    for row in rows:
        if len(row) < 4 or not row[0] or not row[3]:
            continue
        out.append(CredentialRow(
            key=row[0],
            secret=row[3],
            display_name=row[0],
            metadata={
                "store_name": row[1] or row[0],
                "am": row[2] or "Account Manager",
            },
        ))
    return out


def parse_hq_rows(rows: list) -> list:
    """HQ Login: user = column B, password = column H. Only Active rows count."""
    out = []
    for row in rows:
        if len(row) < 8 or not row[1] or not row[7]:
            continue
        status = row[2]
        if status.lower() != "active":
            continue
        out.append(CredentialRow(
            key=row[1],
            secret=row[7],
            display_name=row[0] or "HQ User",
            metadata={
                "email": row[1],
                "role": row[3] or "HQ User",
                "status": status,
            },
        ))
    return out


_PARSERS = {OUTLET: parse_outlet_rows, HQ: parse_hq_rows}


# ═══════════════════════════════════════════════════════════════
# Directory (fetch + cache + fallback)
# ═══════════════════════════════════════════════════════════════

class SheetDirectory:
    """Credential rows per login type, sheet first then the static table."""

    def __init__(self, sheet_id, outlet_sheet="Outlet Login", hq_sheet="HQ Login",
                 cache_seconds=300, timeout=10.0, static=None, clock=time.time):
        self.sheet_id = sheet_id
        self.sheet_names = {OUTLET: outlet_sheet, HQ: hq_sheet}
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self.static = STATIC_CREDENTIALS if static is None else static
        self._clock = clock
        self._lock = threading.Lock()
        self._rows = {OUTLET: [], HQ: []}
        self._fetched_at = {OUTLET: None, HQ: None}
        self._last_error = {OUTLET: None, HQ: None}

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.sheet_id, settings.outlet_sheet, settings.hq_sheet,
                   cache_seconds=settings.sheet_cache_seconds,
                   timeout=settings.sheet_timeout)

    def sheet_url(self, login_type: str) -> str:
        return GVIZ_CSV_URL.format(sheet_id=self.sheet_id,
                                   sheet=quote(self.sheet_names[login_type]))

    def fetch_sheet(self, login_type: str):
        """Download and parse one tab. Returns rows, or None on any fetch failure."""
        url = self.sheet_url(login_type)
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            self._last_error[login_type] = "timeout"
            log.warning("Sheet fetch timed out: %s", self.sheet_names[login_type])
            return None
        except requests.RequestException as e:
            self._last_error[login_type] = str(e)
            log.warning("Sheet fetch failed: %s (%s)", self.sheet_names[login_type], e)
            return None
        if resp.status_code != 200:
            self._last_error[login_type] = f"HTTP {resp.status_code}"
            log.warning("Sheet fetch HTTP %d: %s", resp.status_code, self.sheet_names[login_type])
            return None
        self._last_error[login_type] = None
        return _PARSERS[login_type](parse_csv(resp.text))

    def _is_fresh(self, login_type: str) -> bool:
        fetched = self._fetched_at[login_type]
        return fetched is not None and (self._clock() - fetched) < self.cache_seconds

    def sheet_rows(self, login_type: str, force: bool = False) -> list:
        """Cached sheet rows for a login type; re-fetches when stale."""
        with self._lock:
            if not force and self._is_fresh(login_type):
                return list(self._rows[login_type])
        rows = self.fetch_sheet(login_type)
        with self._lock:
            if rows is not None:
                self._rows[login_type] = rows
                self._fetched_at[login_type] = self._clock()
                log.info("✅ %s sheet loaded: %d users", self.sheet_names[login_type], len(rows))
            return list(self._rows[login_type])

    def candidates(self, login_type: str):
        """Yield (row, source) in lookup order: sheet rows, then static rows."""
        for row in self.sheet_rows(login_type):
            yield row, "sheets"
        for row in self.static.get(login_type, []):
            yield row, "static"

    def status(self) -> dict:
        with self._lock:
            return {
                t: {
                    "sheet": self.sheet_names[t],
                    "rows": len(self._rows[t]),
                    "fresh": self._is_fresh(t),
                    "last_error": self._last_error[t],
                    "static_rows": len(self.static.get(t, [])),
                }
                for t in (OUTLET, HQ)
            }
