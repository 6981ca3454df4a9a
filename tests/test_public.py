from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.content import filter_projects, load_about, load_hero, mock_projects
from app.database import get_session
from app.main import app
from app.models import AboutContent, HomeContent, Message, Project, Skill


def banner(response, kind):
    return parse_qs(urlsplit(response.headers["location"]).query).get(kind, [None])[0]


@pytest.fixture
def empty_client():
    """A client whose database has no tables at all."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


def test_pages_fall_back_to_mock_content(empty_client):
    assert "E-Commerce Platform" in empty_client.get("/").text
    assert "Weather Dashboard" in empty_client.get("/projects").text
    assert "Tailwind CSS" in empty_client.get("/skills").text
    assert "Senior Full-Stack Developer" in empty_client.get("/about").text
    assert "hello@example.com" in empty_client.get("/contact").text


def test_pages_render_stored_content(client, engine):
    with Session(engine) as session:
        session.add(Project(title="Ray Tracer", description="Renders spheres", category="Frontend"))
        session.add(Skill(name="Haskell", level=91, category="Language"))
        session.add(HomeContent(section="hero_name", content="Ada"))
        session.commit()

    home = client.get("/")
    assert "Ray Tracer" in home.text
    assert "Ada" in home.text
    assert "E-Commerce Platform" not in home.text

    skills = client.get("/skills")
    assert "Haskell" in skills.text
    assert "Expert" in skills.text


def test_project_filters():
    projects = mock_projects()
    assert {p.title for p in filter_projects(projects, category="Mobile")} == {"Mobile Chat App"}
    assert {p.title for p in filter_projects(projects, search="stripe")} == {"E-Commerce Platform"}
    assert {p.title for p in filter_projects(projects, search="chart", category="Backend")} == set()
    assert len(filter_projects(projects)) == len(projects)


def test_projects_page_search(empty_client):
    page = empty_client.get("/projects", params={"q": "socket", "category": "All"})
    assert "Task Management App" in page.text
    assert "Weather Dashboard" not in page.text


def test_about_uses_stored_experience(engine):
    with Session(engine) as session:
        session.add(AboutContent(section="experience", content="", data=[{"title": "Engineer", "company": "Acme"}]))
        session.add(AboutContent(section="interests", content="", data=[]))
        session.commit()
        about = load_about(session)

    assert about["experiences"] == [{"title": "Engineer", "company": "Acme"}]
    # Empty lists fall back to the defaults
    assert "Photography" in about["interests"]


def test_hero_links_come_from_data(engine):
    with Session(engine) as session:
        session.add(HomeContent(section="hero_cta_primary", content="See work", data={"href": "/projects"}))
        session.commit()
        hero = load_hero(session)

    assert hero["hero_cta_primary"] == "See work"
    assert hero["hero_cta_primary_href"] == "/projects"
    assert hero["hero_cta_secondary_href"] == "/contact"
    assert hero["hero_title"] == "Full-Stack Developer"


def test_contact_form_requires_fields(client, rows):
    response = client.post(
        "/contact", data={"name": "Grace", "email": "", "message": "Hi"}, follow_redirects=False
    )
    assert banner(response, "error") == "All fields are required"
    assert rows(Message) == []


def test_contact_form_stores_unread_message(client, rows):
    response = client.post(
        "/contact",
        data={"name": "Grace", "email": "grace@example.com", "subject": "", "message": "Hi"},
        follow_redirects=False,
    )
    assert banner(response, "success") == "Thank you for your message! We'll get back to you soon."
    [message] = rows(Message)
    assert message.status == "unread"
    assert message.subject is None
