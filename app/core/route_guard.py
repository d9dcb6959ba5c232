"""
Page-level access decisions for the web frontend.

The decision depends only on the requested path, whether the request
carries a valid session, and whether that user has picked a nickname.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

LOGIN_PATH = "/login"
ONBOARDING_PATH = "/onboarding"
MAP_PATH = "/map"

PUBLIC_PATHS = ("/", LOGIN_PATH)
ONBOARDING_PATHS = (ONBOARDING_PATH,)
PROTECTED_PATHS = (MAP_PATH, "/add-restaurant", "/edit-restaurant")


class PathClass(str, Enum):
    PUBLIC = "public"
    ONBOARDING = "onboarding"
    PROTECTED = "protected"
    OTHER = "other"


@dataclass(frozen=True)
class GuardDecision:
    action: str  # "allow" | "redirect"
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.action == "allow"


ALLOW = GuardDecision("allow")


def _redirect(location: str) -> GuardDecision:
    return GuardDecision("redirect", location)


def _matches(path: str, prefixes) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


def classify_path(path: str) -> PathClass:
    # Query string and fragment never change the page being requested
    path = path.split("#", 1)[0].split("?", 1)[0] or "/"
    # Normalise trailing slash except for the root itself
    if len(path) > 1:
        path = path.rstrip("/")
    if path in PUBLIC_PATHS:
        return PathClass.PUBLIC
    if _matches(path, ONBOARDING_PATHS):
        return PathClass.ONBOARDING
    if _matches(path, PROTECTED_PATHS):
        return PathClass.PROTECTED
    return PathClass.OTHER


def login_redirect(return_path: str) -> str:
    return f"{LOGIN_PATH}?returnUrl={quote(return_path, safe='/')}"


def evaluate_route(path: str, authenticated: bool, has_nickname: bool) -> GuardDecision:
    """
    Decide whether a page request proceeds or where it is redirected.

    Signed-in users without a nickname are funnelled to onboarding from
    public pages as well as protected ones.
    """
    path_class = classify_path(path)
    if path_class is PathClass.OTHER:
        return ALLOW

    if not authenticated:
        if path_class is PathClass.PROTECTED:
            return _redirect(login_redirect(path))
        if path_class is PathClass.ONBOARDING:
            return _redirect(LOGIN_PATH)
        return ALLOW

    if not has_nickname:
        if path_class is PathClass.ONBOARDING:
            return ALLOW
        return _redirect(ONBOARDING_PATH)

    if path_class is PathClass.PROTECTED:
        return ALLOW
    return _redirect(MAP_PATH)
