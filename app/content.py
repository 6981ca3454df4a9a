"""Public page content with hardcoded fallbacks.

Public pages never fail because a table is missing or unreachable: each
fetch falls back to the mock content below and logs the reason.
"""
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models import AboutContent, ContactInfo, HomeContent, Project, Skill

logger = logging.getLogger(__name__)

UNSPLASH = "https://images.unsplash.com/photo-{}?w=600&q=80"


# =========================================================
# DONNÉES DE DÉMONSTRATION
# =========================================================

def mock_projects() -> list[Project]:
    return [
        Project(
            id=1,
            title="E-Commerce Platform",
            description="A full-stack e-commerce solution built with Next.js, featuring user authentication, payment processing, and admin dashboard. Includes inventory management, order tracking, and analytics.",
            image=UNSPLASH.format("1556742049-0cfed4f6a45d"),
            technologies=["Next.js", "TypeScript", "Stripe", "Supabase", "Tailwind CSS"],
            category="Full-Stack",
            live_url="https://example.com",
            github_url="https://github.com",
            featured=True,
            date="2024",
            status="Completed",
        ),
        Project(
            id=2,
            title="Task Management App",
            description="A collaborative task management application with real-time updates, drag-and-drop functionality, and team collaboration features. Built with modern React patterns.",
            image=UNSPLASH.format("1611224923853-80b023f02d71"),
            technologies=["React", "Node.js", "Socket.io", "MongoDB", "Express"],
            category="Full-Stack",
            live_url="https://example.com",
            github_url="https://github.com",
            featured=True,
            date="2023",
            status="Completed",
        ),
        Project(
            id=3,
            title="Weather Dashboard",
            description="A responsive weather dashboard with location-based forecasts, interactive maps, and detailed weather analytics. Features beautiful data visualizations.",
            image=UNSPLASH.format("1504608524841-42fe6f032b4b"),
            technologies=["Vue.js", "Chart.js", "OpenWeather API", "Tailwind CSS"],
            category="Frontend",
            live_url="https://example.com",
            github_url="https://github.com",
            date="2023",
            status="Completed",
        ),
        Project(
            id=4,
            title="Portfolio Website",
            description="A modern, responsive portfolio website featuring dark mode and smooth animations.",
            image=UNSPLASH.format("1467232004584-a241de8bcf5d"),
            technologies=["Next.js", "Framer Motion", "Tailwind CSS", "MDX"],
            category="Frontend",
            live_url="https://example.com",
            github_url="https://github.com",
            date="2024",
            status="Completed",
        ),
        Project(
            id=5,
            title="REST API Service",
            description="A scalable REST API featuring JWT authentication, rate limiting, and comprehensive documentation.",
            image=UNSPLASH.format("1558494949-ef010cbdcc31"),
            technologies=["Node.js", "Express", "PostgreSQL", "JWT", "Swagger"],
            category="Backend",
            live_url="https://example.com",
            github_url="https://github.com",
            date="2023",
            status="Completed",
        ),
        Project(
            id=6,
            title="Mobile Chat App",
            description="A real-time chat application featuring end-to-end encryption, file sharing, and push notifications.",
            image=UNSPLASH.format("1611606063065-ee7946f0787a"),
            technologies=["React Native", "Firebase", "Socket.io", "Redux"],
            category="Mobile",
            live_url="https://example.com",
            github_url="https://github.com",
            date="2024",
            status="In Progress",
        ),
    ]


def mock_skills() -> list[Skill]:
    rows = [
        ("React", 95, "Frontend"),
        ("TypeScript", 90, "Language"),
        ("Next.js", 88, "Framework"),
        ("Node.js", 85, "Backend"),
        ("Tailwind CSS", 92, "Styling"),
        ("PostgreSQL", 80, "Database"),
        ("Supabase", 85, "Backend"),
        ("Framer Motion", 78, "Animation"),
        ("Git", 88, "Tools"),
        ("Docker", 75, "DevOps"),
        ("AWS", 70, "Cloud"),
        ("Python", 82, "Language"),
    ]
    skills = [Skill(id=i, name=name, level=level, category=category)
              for i, (name, level, category) in enumerate(rows, start=1)]
    return sorted(skills, key=lambda s: (s.category, -s.level))


def mock_contact_info() -> list[ContactInfo]:
    return [
        ContactInfo(id=1, type="email", icon="Mail", title="Email",
                    value="hello@example.com", link="mailto:hello@example.com"),
        ContactInfo(id=2, type="phone", icon="Phone", title="Phone",
                    value="+1 (555) 123-4567", link="tel:+15551234567"),
        ContactInfo(id=3, type="location", icon="MapPin", title="Location",
                    value="San Francisco, CA", link="#"),
        ContactInfo(id=4, type="response_time", icon="Clock", title="Response Time",
                    value="Within 24 hours", link="#"),
    ]


MOCK_EXPERIENCES = [
    {
        "title": "Senior Full-Stack Developer",
        "company": "Tech Solutions Inc.",
        "period": "2022 - Present",
        "description": "Leading development of scalable web applications. Mentoring junior developers and architecting cloud solutions.",
        "technologies": ["React", "Next.js", "TypeScript", "AWS", "PostgreSQL"],
    },
    {
        "title": "Frontend Developer",
        "company": "Digital Agency Co.",
        "period": "2020 - 2022",
        "description": "Developed responsive web applications and collaborated with design teams to create pixel-perfect user interfaces.",
        "technologies": ["React", "Vue.js", "Sass", "JavaScript", "Figma"],
    },
    {
        "title": "Junior Developer",
        "company": "StartUp Ventures",
        "period": "2019 - 2020",
        "description": "Built and maintained web applications while learning modern development practices and agile methodologies.",
        "technologies": ["HTML", "CSS", "JavaScript", "PHP", "MySQL"],
    },
]

MOCK_INTERESTS = [
    "Open Source Contributions",
    "Machine Learning",
    "Mobile Development",
    "Cloud Architecture",
    "UI/UX Design",
    "Photography",
]

HERO_DEFAULTS = {
    "hero_greeting": 'console.log("Hello, World!")',
    "hero_name": "LoNg",
    "hero_title": "Full-Stack Developer",
    "hero_subtitle": "Building digital experiences with modern technologies",
    "hero_cta_primary": "View My Work",
    "hero_cta_secondary": "Get In Touch",
    "hero_social_github": "https://github.com",
    "hero_social_linkedin": "https://linkedin.com",
    "hero_social_email": "mailto:hello@example.com",
}

HERO_LINK_DEFAULTS = {
    "hero_cta_primary": "#projects",
    "hero_cta_secondary": "/contact",
}


# =========================================================
# CHARGEMENT
# =========================================================

def fetch_rows(session: Session, model, *order_by, fallback=None) -> list[Any]:
    """Select all rows of ``model``; on failure return ``fallback()``."""
    try:
        return list(session.exec(select(model).order_by(*order_by)).all())
    except SQLAlchemyError as exc:
        session.rollback()
        logger.info("No %s table available, using mock data: %s", model.__tablename__, exc)
        return fallback() if fallback else []


def load_projects(session: Session) -> list[Project]:
    return fetch_rows(session, Project, Project.featured.desc(), Project.created_at.desc(),
                      fallback=mock_projects)


def load_skills(session: Session) -> list[Skill]:
    return fetch_rows(session, Skill, Skill.category, Skill.level.desc(), fallback=mock_skills)


def load_contact_info(session: Session) -> list[ContactInfo]:
    return fetch_rows(session, ContactInfo, ContactInfo.type, fallback=mock_contact_info)


def load_about(session: Session) -> dict[str, Any]:
    rows = fetch_rows(session, AboutContent, AboutContent.section)
    by_section = {row.section: row for row in rows}
    experience = by_section.get("experience")
    interests = by_section.get("interests")
    return {
        "sections": rows,
        "experiences": (experience.data if experience else None) or MOCK_EXPERIENCES,
        "interests": (interests.data if interests else None) or MOCK_INTERESTS,
    }


def load_hero(session: Session) -> dict[str, str]:
    """Hero texts and links keyed by section, defaults for missing sections."""
    rows = fetch_rows(session, HomeContent, HomeContent.section)
    by_section = {row.section: row for row in rows}

    hero = {}
    for section, default in HERO_DEFAULTS.items():
        row = by_section.get(section)
        hero[section] = row.content if row else default
    for section, default in HERO_LINK_DEFAULTS.items():
        row = by_section.get(section)
        data = row.data if row and isinstance(row.data, dict) else {}
        hero[f"{section}_href"] = data.get("href") or default
    return hero


def filter_projects(projects: list[Project], search: str = "", category: str = "All") -> list[Project]:
    term = (search or "").strip().lower()

    def matches(project: Project) -> bool:
        if category and category != "All" and project.category != category:
            return False
        if not term:
            return True
        return (
            term in project.title.lower()
            or term in project.description.lower()
            or any(term in tech.lower() for tech in project.technologies or [])
        )

    return [p for p in projects if matches(p)]
