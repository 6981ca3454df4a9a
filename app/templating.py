from pathlib import Path

from fastapi.templating import Jinja2Templates

from app import display
from app.forms import format_json_field, format_technologies

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates_admin = Jinja2Templates(directory=str(BASE_DIR / "admin"))

for _env in (templates.env, templates_admin.env):
    _env.globals.update(
        skill_level=display.skill_level,
        skill_color=display.skill_color,
        contact_icon=display.contact_icon,
        section_color=display.section_color,
        action_color=display.action_color,
    )
    _env.filters["technologies"] = format_technologies
    _env.filters["pretty_json"] = format_json_field
