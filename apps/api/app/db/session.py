from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from app.core.config import settings

connect_args = {}
backend = make_url(settings.DATABASE_URL).get_backend_name()
if backend.startswith("postgresql"):
    connect_args["options"] = "-c timezone=utc"
    connect_args["connect_timeout"] = settings.DB_CONNECT_TIMEOUT_SECONDS
elif backend == "sqlite":
    connect_args["check_same_thread"] = False
    connect_args["timeout"] = settings.DB_CONNECT_TIMEOUT_SECONDS

engine = create_engine(
    settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
