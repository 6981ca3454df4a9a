"""Presentation helpers shared by the public pages and the dashboard."""

SKILL_CATEGORIES = [
    "Frontend",
    "Backend",
    "Language",
    "Framework",
    "Styling",
    "Database",
    "Animation",
    "Tools",
    "DevOps",
    "Cloud",
]

PROJECT_CATEGORIES = ["Full-Stack", "Frontend", "Backend", "Mobile", "Desktop", "AI/ML"]
PROJECT_FILTER_CATEGORIES = ["All", "Full-Stack", "Frontend", "Backend", "Mobile"]
PROJECT_STATUSES = ["Completed", "In Progress", "Planning", "On Hold"]


def skill_level(level: int) -> str:
    if level >= 90:
        return "Expert"
    if level >= 80:
        return "Advanced"
    if level >= 70:
        return "Intermediate"
    return "Beginner"


def skill_color(level: int) -> str:
    if level >= 90:
        return "green"
    if level >= 80:
        return "blue"
    if level >= 70:
        return "yellow"
    return "red"


# =========================================================
# COORDONNÉES
# =========================================================

CONTACT_TYPES = [
    {"value": "email", "label": "Email", "icon": "Mail"},
    {"value": "phone", "label": "Phone", "icon": "Phone"},
    {"value": "location", "label": "Location", "icon": "MapPin"},
    {"value": "response_time", "label": "Response Time", "icon": "Clock"},
    {"value": "github", "label": "GitHub", "icon": "Github"},
    {"value": "linkedin", "label": "LinkedIn", "icon": "Linkedin"},
    {"value": "twitter", "label": "Twitter", "icon": "Twitter"},
    {"value": "website", "label": "Website", "icon": "Globe"},
    {"value": "other", "label": "Other", "icon": "Info"},
]

# Icon name -> glyph rendered in templates
CONTACT_ICONS = {
    "Mail": "✉",
    "Phone": "☎",
    "MapPin": "⌖",
    "Clock": "◷",
    "Github": "⌥",
    "Linkedin": "in",
    "Twitter": "𝕏",
    "Globe": "◍",
    "Info": "ⓘ",
}
DEFAULT_CONTACT_ICON = "Mail"


def contact_icon(name: str | None) -> str:
    return CONTACT_ICONS.get(name or "", CONTACT_ICONS[DEFAULT_CONTACT_ICON])


def contact_type_defaults(type_: str) -> dict[str, str]:
    """Title and icon pre-filled when a contact type is picked."""
    for entry in CONTACT_TYPES:
        if entry["value"] == type_:
            return {"title": entry["label"], "icon": entry["icon"]}
    return {"title": "", "icon": ""}


# =========================================================
# SECTIONS DE L’ACCUEIL
# =========================================================

HOME_SECTIONS = [
    ("hero_greeting", "Hero Greeting"),
    ("hero_name", "Developer Name"),
    ("hero_title", "Main Title"),
    ("hero_subtitle", "Subtitle"),
    ("hero_cta_primary", "Primary CTA"),
    ("hero_cta_secondary", "Secondary CTA"),
    ("hero_social_github", "GitHub Link"),
    ("hero_social_linkedin", "LinkedIn Link"),
    ("hero_social_email", "Email Link"),
]


def section_color(section: str) -> str:
    if "greeting" in section:
        return "blue"
    if "name" in section:
        return "purple"
    if "title" in section or "subtitle" in section:
        return "green"
    if "cta" in section:
        return "orange"
    if "social" in section:
        return "pink"
    return "gray"


# =========================================================
# CONSOLE D’AUDIT
# =========================================================

ACTION_COLORS = {
    "LOGIN": "green",
    "LOGOUT": "gray",
    "CREATE": "blue",
    "UPDATE": "yellow",
    "DELETE": "red",
    "MESSAGE_RECEIVED": "purple",
    "VIEW": "cyan",
}


def action_color(action: str) -> str:
    return ACTION_COLORS.get(action, "gray")
