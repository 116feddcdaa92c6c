# =============================================================================
# 🗄️ database.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Datenbankkonfiguration für den QR-Scan-Service
# Standard: SQLite lokal, produktiv per DATABASE_URL (z. B. MySQL/Postgres)
# =============================================================================

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from utils.settings import database_url

SQLALCHEMY_DATABASE_URL = database_url()

# 🔹 SQLite braucht check_same_thread=False (FastAPI nutzt Threadpool)
_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# 🔹 Engine erstellen
# pool_pre_ping = erkennt automatisch unterbrochene Verbindungen
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args,
)

# 🔹 SessionFactory – erzeugt Session für jede Anfrage
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# 🔹 Basisklasse für alle SQLAlchemy-Modelle
Base = declarative_base()


def ensure_tables(bind) -> None:
    """Legt fehlende Tabellen an (idempotent)."""
    import models  # noqa: F401  – registriert alle Modelle an Base

    Base.metadata.create_all(bind=bind)


# 🔹 Dependency für FastAPI
def get_db():
    """
    Erstellt eine neue Datenbank-Session pro Anfrage und schließt sie automatisch.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
