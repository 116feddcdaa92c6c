import sys, os, pytest, pytest_asyncio, httpx
from httpx import ASGITransport

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Tests laufen nie gegen die lokale Datenbankdatei
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from utils.qr_repository import QRRepository
from utils.rate_limit import get_rate_limiter
from utils.scan_store import get_scan_store


@pytest.fixture(autouse=True)
def _reset_in_memory_state():
    """Rate-Limiter und Scan-Status sind prozesslokal → pro Test leeren."""
    get_rate_limiter().reset()
    get_scan_store().reset()
    yield
    get_rate_limiter().reset()
    get_scan_store().reset()


@pytest.fixture
def session_local():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield testing_session_local

    app.dependency_overrides.pop(get_db, None)
    engine.dispose()


@pytest.fixture
def test_client(session_local):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def seed_qr(session_local):
    """Legt eine QR-Definition an und gibt ihre ID zurück."""

    def _seed(content_type: str, content: str, **kwargs) -> str:
        kwargs.setdefault("owner_id", "owner-1")
        with session_local() as db:
            qr = QRRepository(db).create(content_type=content_type, content=content, **kwargs)
            return qr.id

    return _seed


@pytest_asyncio.fixture
async def client(session_local):
    """Erstellt einen funktionierenden Testclient."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
