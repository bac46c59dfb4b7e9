from app.db import models  # noqa: F401  # registers every table on the metadata
from app.db.base import Base
from app.db.session import engine

if __name__ == "__main__":
    print("Creating study continuity tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created:", ", ".join(sorted(Base.metadata.tables)))
