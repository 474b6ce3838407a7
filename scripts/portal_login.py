#!/usr/bin/env python3
"""
scripts/portal_login.py — Portal login from the terminal (no server)

Checks credentials against the same directory the web login uses and keeps
the profile in DATA_DIR/local_profile.json until logout.

Usage:
    python scripts/portal_login.py login DEMO demo123
    python scripts/portal_login.py login demo@apotekalpro.id demo123 --type hq
    python scripts/portal_login.py whoami
    python scripts/portal_login.py logout
    python scripts/portal_login.py whatsapp [--phone 0812...] [--message "..."]

Exit codes:
    0 = ok
    1 = login failed / not logged in / WhatsApp fell back to manual links
"""

import argparse
import json
import os
import sys

# Resolve project root from this script
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.agents.sheets_client import SheetDirectory  # noqa: E402
from src.core import whatsapp  # noqa: E402
from src.core.auth import LOGIN_TYPES, authenticate  # noqa: E402
from src.core.profile_store import LocalProfileStore  # noqa: E402
from src.core.settings import Settings  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apotek Alpro BPT Portal login")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Log in and remember the profile")
    p.add_argument("username", help="Store code (outlet) or email (HQ)")
    p.add_argument("password")
    p.add_argument("--type", dest="login_type", choices=LOGIN_TYPES, default="outlet")

    sub.add_parser("whoami", help="Show the remembered profile")
    sub.add_parser("logout", help="Forget the remembered profile")

    p = sub.add_parser("whatsapp", help="Open WhatsApp (group by default)")
    p.add_argument("--phone", help="Message this number instead of joining the group")
    p.add_argument("--message", default=whatsapp.CONTACT_MESSAGE)
    p.add_argument("--json", action="store_true", help="Print the launch result as JSON")
    return parser


def main(argv=None, directory=None, store=None, launcher=None, out=print) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    store = store or LocalProfileStore()

    if args.command == "login":
        directory = directory or SheetDirectory.from_settings(settings)
        result = authenticate(args.username, args.password, args.login_type, directory)
        if not result.success:
            out(f"❌ {result.message}")
            return 1
        store.save(result.user)
        out(f"✅ Welcome, {result.user.display_name}! ({result.user.full_store_name})")
        return 0

    if args.command == "whoami":
        user = store.load()
        if user is None:
            out("Not logged in")
            return 1
        out(json.dumps(user.to_dict(), indent=2))
        return 0

    if args.command == "logout":
        store.clear()
        out("👋 Logged out")
        return 0

    # whatsapp
    if args.phone:
        urls = whatsapp.contact_urls(args.phone, args.message)
    else:
        urls = [settings.whatsapp_group_url]
    launcher = launcher or whatsapp.WhatsAppLauncher(whatsapp.browser_strategies(),
                                                     settings.whatsapp_phone)
    result = launcher.launch(urls[0], urls[1:])
    if args.json:
        out(json.dumps(result.to_dict(), indent=2))
    elif result.success:
        out(f"📱 WhatsApp opened ({result.strategy})")
    else:
        panel = result.fallback
        out("⚠️  Could not open WhatsApp. Try one of these:")
        for link in panel.links:
            out(f"  {link['title']}: {link['url']}")
        out(f"  Phone: {whatsapp.format_phone_display(panel.phone)}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
