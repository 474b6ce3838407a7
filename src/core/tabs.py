"""
tabs.py — Dashboard tab switcher

One switcher per tab group (main navigation, campaign sub-tabs, monitoring
sub-tabs). Exactly one tab is active. A pane's initializer runs the first
time that pane becomes active, never eagerly and never twice.
"""

import logging

log = logging.getLogger("portal.tabs")

MAIN_TABS = ("homepage", "campaign", "monitoring", "health-news", "tiktok-cuan")
CAMPAIGN_TABS = ("campaign-calendar", "oct-kenali-gula", "sept-women-health",
                 "dec-anniversary-sales", "new-year-new-me")
MONITORING_TABS = ("tiktok-analytics", "performance-metrics")

TAB_GROUPS = {
    "main": MAIN_TABS,
    "campaign": CAMPAIGN_TABS,
    "monitoring": MONITORING_TABS,
}


class UnknownTabError(ValueError):
    pass


class TabSwitch:
    """Outcome of one switch request."""

    def __init__(self, tab, previous, changed, initialized=False, classes=None, result=None):
        self.tab = tab
        self.previous = previous
        self.changed = changed
        self.initialized = initialized
        self.classes = classes or {}
        self.result = result

    def to_dict(self) -> dict:
        return {
            "tab": self.tab,
            "previous": self.previous,
            "changed": self.changed,
            "initialized": self.initialized,
            "active": self.classes,
        }


class TabSwitcher:
    def __init__(self, tabs, current=None, initializers=None, initialized=None):
        if not tabs:
            raise ValueError("TabSwitcher needs at least one tab")
        self.tabs = tuple(tabs)
        self.current = current if current is not None else self.tabs[0]
        if self.current not in self.tabs:
            raise UnknownTabError(self.current)
        self.initializers = dict(initializers or {})
        # The landing pane is on screen from the start.
        self.initialized = set(initialized) if initialized is not None else {self.current}

    def classes(self) -> dict:
        """tab id → whether its nav element and pane carry the active class."""
        return {t: t == self.current for t in self.tabs}

    def switch(self, tab_id: str) -> TabSwitch:
        if tab_id not in self.tabs:
            raise UnknownTabError(tab_id)
        if tab_id == self.current:
            return TabSwitch(tab_id, tab_id, changed=False, classes=self.classes())

        previous = self.current
        self.current = tab_id
        ran, result = False, None
        if tab_id not in self.initialized:
            self.initialized.add(tab_id)
            init = self.initializers.get(tab_id)
            if init is not None:
                result = init()
                ran = True
                log.info("Initialized pane %s", tab_id, extra={"tab": tab_id})
        return TabSwitch(tab_id, previous, changed=True, initialized=ran,
                         classes=self.classes(), result=result)

    def to_dict(self) -> dict:
        return {"current": self.current, "initialized": sorted(self.initialized)}

    @classmethod
    def from_dict(cls, tabs, data, initializers=None):
        data = data or {}
        current = data.get("current")
        if current not in tabs:
            return cls(tabs, initializers=initializers)
        initialized = [t for t in data.get("initialized", []) if t in tabs]
        return cls(tabs, current=current, initializers=initializers, initialized=initialized)
