"""
src/core/paths.py — Centralized Path Configuration

Single source of truth for directory paths across the portal.
Every module imports from here instead of computing its own DATA_DIR.

On Railway with a volume mounted, DATA_DIR points to the persistent volume
so logs and the local profile file survive deploys.
"""

import os
import logging

log = logging.getLogger("portal.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_REPO_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


# ── Resolve persistent DATA_DIR ─────────────────────────────────────────────
# Priority: PORTAL_DATA_DIR env → Railway volume mount → repo data/
def _resolve_data_dir() -> str:
    """Find the best persistent data directory."""
    env_dir = os.environ.get("PORTAL_DATA_DIR", "")
    if env_dir:
        return env_dir

    vol_mount = os.environ.get("RAILWAY_VOLUME_MOUNT_PATH", "")
    if vol_mount and os.path.isdir(vol_mount):
        return os.path.join(vol_mount, "data") if not vol_mount.endswith("/data") else vol_mount

    return _REPO_DATA_DIR


DATA_DIR = _resolve_data_dir()
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
LOCAL_PROFILE_PATH = os.path.join(DATA_DIR, "local_profile.json")

for _d in [DATA_DIR, LOG_DIR]:
    try:
        os.makedirs(_d, exist_ok=True)
    except OSError as e:
        log.warning("Could not create %s: %s", _d, e)


def validate_paths(data_dir: str = None) -> dict:
    """Runtime validation — call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    data_dir = data_dir or DATA_DIR
    result = {"ok": True, "errors": [], "warnings": [],
              "resolved": {"PROJECT_ROOT": PROJECT_ROOT, "DATA_DIR": data_dir}}

    if not os.path.isdir(data_dir):
        result["errors"].append(f"DATA_DIR not found: {data_dir}")
        result["ok"] = False
        return result

    test_file = os.path.join(data_dir, ".write_test")
    try:
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"DATA_DIR not writable: {e}")
        result["ok"] = False

    if data_dir == _REPO_DATA_DIR and os.environ.get("RAILWAY_ENVIRONMENT"):
        result["warnings"].append(
            "Running on Railway WITHOUT persistent volume! "
            "Logs and local profiles will be lost on every deploy."
        )
    return result
