"""User-agent classification.

A pure, table-driven mapping from a user-agent string to device class,
browser and operating system. Rules are tried in order and the first
match wins, so more specific rules come before the ones they would
otherwise be shadowed by (Edge before Chrome, Android before Linux,
iOS before macOS).
"""

import re
from typing import NamedTuple

_TABLET = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.IGNORECASE)
_MOBILE = re.compile(r"Mobile|Android|iP(hone|od)|IEMobile|BlackBerry|Kindle|Silk-Accelerated")

# (name, presence pattern, version pattern)
BROWSER_RULES: tuple[tuple[str, re.Pattern, re.Pattern | None], ...] = (
    ("Firefox", re.compile(r"Firefox/"), re.compile(r"Firefox/(\S+)")),
    ("Edge", re.compile(r"Edg(e|A|iOS)?/"), re.compile(r"Edg(?:e|A|iOS)?/(\S+)")),
    ("Chrome", re.compile(r"Chrome/"), re.compile(r"Chrome/(\S+)")),
    ("Safari", re.compile(r"Safari/"), re.compile(r"Version/(\S+)")),
)

OS_RULES: tuple[tuple[str, re.Pattern, re.Pattern | None], ...] = (
    ("Windows", re.compile(r"Windows"), re.compile(r"Windows NT (\d+\.\d+)")),
    ("Android", re.compile(r"Android"), re.compile(r"Android (\d+(?:\.\d+)?)")),
    ("iOS", re.compile(r"iPhone|iPad|iPod|\biOS\b"), re.compile(r"OS (\d+_\d+)")),
    ("macOS", re.compile(r"Mac OS X"), re.compile(r"Mac OS X (\d+[._]\d+)")),
    ("Linux", re.compile(r"Linux"), None),
)

UNKNOWN = "Unknown"


class UserAgentInfo(NamedTuple):
    """Classification of one user-agent string."""

    device: str
    browser: str
    browser_version: str
    os: str
    os_version: str


def detect_device(user_agent: str) -> str:
    """Classify a user agent as desktop, tablet or mobile."""
    if _TABLET.search(user_agent):
        return "tablet"
    if _MOBILE.search(user_agent):
        return "mobile"
    return "desktop"


def _match(rules, user_agent: str) -> tuple[str, str]:
    for name, presence, version_pattern in rules:
        if not presence.search(user_agent):
            continue
        version = ""
        if version_pattern is not None:
            found = version_pattern.search(user_agent)
            if found:
                version = found.group(1).replace("_", ".")
        return name, version
    return UNKNOWN, ""


def parse_user_agent(user_agent: str | None) -> UserAgentInfo:
    """Classify a user-agent string.

    Args:
        user_agent: Raw User-Agent header value. Empty or None is
            classified as an unknown desktop client.

    Returns:
        UserAgentInfo with device, browser and OS names and versions.
    """
    user_agent = user_agent or ""
    browser, browser_version = _match(BROWSER_RULES, user_agent)
    os_name, os_version = _match(OS_RULES, user_agent)
    return UserAgentInfo(
        device=detect_device(user_agent),
        browser=browser,
        browser_version=browser_version,
        os=os_name,
        os_version=os_version,
    )
