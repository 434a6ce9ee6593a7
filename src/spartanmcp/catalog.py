"""Known Spartan UI components and documentation topics.

Pure lookup data plus URL builders and fuzzy name suggestions.
No knowledge of AppState, MCP, or I/O.
"""

from __future__ import annotations

from urllib.parse import quote

from rapidfuzz import fuzz, process

# Mirrors the component navigation of spartan.ng. Entries marked "soon" on
# the site (form, navigation-menu) are left out until they ship.
KNOWN_COMPONENTS: tuple[str, ...] = (
    "accordion",
    "alert",
    "alert-dialog",
    "aspect-ratio",
    "avatar",
    "badge",
    "breadcrumb",
    "button",
    "calendar",
    "card",
    "carousel",
    "checkbox",
    "collapsible",
    "combobox",
    "command",
    "context-menu",
    "data-table",
    "date-picker",
    "dialog",
    "dropdown-menu",
    "form-field",
    "hover-card",
    "icon",
    "input",
    "input-otp",
    "label",
    "menubar",
    "pagination",
    "popover",
    "progress",
    "radio-group",
    "scroll-area",
    "select",
    "separator",
    "sheet",
    "skeleton",
    "slider",
    "sonner",
    "spinner",
    "switch",
    "table",
    "tabs",
    "textarea",
    "toggle",
    "toggle-group",
    "tooltip",
)

DOCUMENTATION_TOPICS: tuple[str, ...] = (
    "installation",
    "theming",
    "dark-mode",
    "typography",
    "health-checks",
    "update-guide",
)

# Topics hosted outside spartan.ng. Served through the fetch cache only.
EXTERNAL_TOPICS: dict[str, str] = {
    "analog-dark-mode": "https://dev.to/this-is-angular/dark-mode-with-analog-tailwind-4049",
}


def normalise_component_name(raw: str) -> str:
    """Trim and lowercase a component name so it can be used as a cache key."""
    return raw.strip().lower()


def component_url(name: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(name, safe='')}"


def docs_url(topic: str, base_url: str) -> str:
    external = EXTERNAL_TOPICS.get(topic)
    if external is not None:
        return external
    return f"{base_url.rstrip('/')}/{quote(topic, safe='')}"


def suggest_components(
    query: str,
    *,
    limit: int = 3,
    score_cutoff: int = 60,
) -> list[str]:
    """Return known component names that look like ``query``, best first."""
    normalised = normalise_component_name(query)
    if not normalised:
        return []
    results = process.extract(
        normalised,
        KNOWN_COMPONENTS,
        scorer=fuzz.ratio,
        limit=limit,
        score_cutoff=score_cutoff,
    )
    return [name for name, _score, _idx in results]
