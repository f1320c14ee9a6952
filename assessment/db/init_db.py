from assessment.db.base import Base
from assessment.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
