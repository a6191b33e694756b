"""Failover price feed over a primary and a secondary price oracle."""
