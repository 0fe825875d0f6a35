from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from storefront.core.config import get_settings
from storefront.persistence.database import database, unit_of_work
from storefront.persistence.models import Base, ProductImageModel, ProductModel


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_database(test_db_path: Path):
    settings = get_settings()
    settings.delivery_sweep_enabled = False
    settings.delivery_mode = "fixed"
    settings.delivery_fixed_days = 1

    database.bind(f"sqlite+pysqlite:///{test_db_path}")
    database.drop_schema()
    database.create_schema()
    yield
    database.drop_schema()


@pytest.fixture(autouse=True)
def clean_tables(configure_test_database):
    yield
    with unit_of_work() as s:
        for table in reversed(Base.metadata.sorted_tables):
            s.execute(delete(table))


@pytest.fixture()
def client(configure_test_database):
    from storefront.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_product():
    def _make(price: str = "10.00", stock: int = 10, active: bool = True, name: str = "Widget", image_urls=()):
        with unit_of_work() as s:
            product = ProductModel(name=name, price=Decimal(price), stock=stock, active=active)
            s.add(product)
            s.flush()
            for url in image_urls:
                s.add(ProductImageModel(product_id=product.id, url=url))
            return product.id

    return _make


@pytest.fixture()
def auth_headers():
    settings = get_settings()
    return {
        "customer": {"X-API-Key": settings.customer_api_key},
        "admin": {"X-API-Key": settings.admin_api_key},
    }
