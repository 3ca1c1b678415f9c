import os
import tempfile

# Settings are read once at import time; point them at a throwaway database
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/wms-default.db")
os.environ.setdefault("RUN_MIGRATIONS", "false")

import pytest
from fastapi.testclient import TestClient

from wms.domain.models import InventoryItem, Product
from wms.infrastructure.db import build_engine, get_db, init_models, make_session_factory
from wms.main import app


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'wms.db'}")
    init_models(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def stock(session_factory):
    """Create a product with an inventory row and return its id."""

    def _stock(name: str, quantity: int) -> str:
        with session_factory() as session:
            product = Product(name=name)
            session.add(product)
            session.flush()
            session.add(InventoryItem(product_id=product.id, quantity=quantity))
            session.commit()
            return product.id

    return _stock


@pytest.fixture
def quantity_of(session_factory):
    """Read a product's on-hand quantity through a fresh session."""

    def _quantity_of(product_id: str):
        with session_factory() as session:
            row = session.query(InventoryItem).filter(InventoryItem.product_id == product_id).first()
            return None if row is None else row.quantity

    return _quantity_of
