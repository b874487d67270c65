# backend/portfolio_tracker/routers/__init__.py
"""HTTP routers. Each module exposes a `router` included by main.py."""
