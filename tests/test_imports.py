import importlib

import pytest


@pytest.mark.parametrize("module", [
    "wms.main",
    "wms.client",
    "wms.application.order_service",
    "wms.application.inventory_service",
    "wms.application.product_service",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None


def test_app_routes_registered():
    from wms.main import app

    paths = {route.path for route in app.routes}
    assert "/api/inventory/bulk" in paths
    assert "/api/orders/{order_id}/ship" in paths
