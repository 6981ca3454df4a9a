from sqlmodel import SQLModel, Session, create_engine

from app.config import DATABASE_URL


connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)


def init_db(bind=engine) -> None:
    # Import for side effects: registers every table on SQLModel.metadata
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(bind)


def get_session():
    with Session(engine) as session:
        yield session
