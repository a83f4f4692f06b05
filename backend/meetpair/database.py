from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from meetpair.config import DATABASE_URL, SQL_ECHO

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from meetpair.models.bout import Bout  # noqa: F401
    from meetpair.models.excluded_pair import ExcludedPair  # noqa: F401
    from meetpair.models.meet import Meet, MeetTeam  # noqa: F401
    from meetpair.models.meet_checkpoint import MeetCheckpoint  # noqa: F401
    from meetpair.models.meet_change import MeetChange  # noqa: F401
    from meetpair.models.meet_wrestler_status import MeetWrestlerStatus  # noqa: F401
    from meetpair.models.team import Team, TeamMatRule  # noqa: F401
    from meetpair.models.wrestler import Wrestler  # noqa: F401

    SQLModel.metadata.create_all(engine)
