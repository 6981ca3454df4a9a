from fastapi.responses import RedirectResponse
from starlette.datastructures import URL


BANNER_KINDS = ("success", "error", "message")


def encoded_redirect(kind: str, path: str, message: str) -> RedirectResponse:
    """Redirect to ``path`` carrying a banner, e.g. ``/contact?error=...``."""
    if kind not in BANNER_KINDS:
        raise ValueError(f"Unknown banner kind: {kind}")
    url = URL(path).include_query_params(**{kind: message})
    return RedirectResponse(str(url), status_code=302)


def banner_from(query_params) -> dict[str, str] | None:
    for kind in ("error", "success", "message"):
        if query_params.get(kind):
            return {"kind": kind, "text": query_params[kind]}
    return None


def safe_path(path: str | None, default: str | None = None) -> str | None:
    """Return ``path`` if it stays on this site, otherwise ``default``."""
    if not path or not path.startswith("/") or path.startswith(("//", "/\\")):
        return default
    return path
