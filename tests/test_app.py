"""
Tests for application startup and shutdown
"""

from fastapi.testclient import TestClient

from stocklet.core.database import Database
from stocklet.main import create_app
from stocklet.models.item import Item


class TestLifespan:
    """Database handle ownership across the app's lifespan"""

    def test_caller_opened_handle_survives_shutdown(self):
        db = Database("sqlite://").open()
        try:
            with TestClient(create_app(db)) as client:
                assert client.get("/health").status_code == 200

            assert db.engine is not None
            session = db.session()
            try:
                assert session.query(Item).count() == 0
            finally:
                session.close()
        finally:
            db.close()

    def test_app_opened_handle_is_closed_on_shutdown(self):
        db = Database("sqlite://")
        with TestClient(create_app(db)):
            assert db.engine is not None

        assert db.engine is None
