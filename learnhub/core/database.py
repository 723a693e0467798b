from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from learnhub.core.config import settings

DATABASE_URL = settings.DATABASE_URL

# SQLite needs cross-thread access because FastAPI runs sync endpoints in a threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Dependency to get a database session.
    Ensures the database session is always closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Function to create all tables.
# In production the schema is managed with Alembic migrations.
def create_db_and_tables(bind=None):
    # Importing the models package registers every table with Base.metadata
    import learnhub.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)

if __name__ == "__main__":
    print("Creating database tables based on models...")
    create_db_and_tables()
    print("Database tables created (if they didn't exist).")
