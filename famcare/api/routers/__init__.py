"""
FastAPI routers, one module per area: families, visits, deliveries,
imports and the dashboard.
"""
