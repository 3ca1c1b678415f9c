"""Warehouse management service: products, stock levels and order shipment."""
