# Routes package __init__.py - re-exports routers for main.py convenience
from .search import router as search_router
from .quotes import router as quotes_router, favorites_router
from .history import router as history_router
from .admin import router as admin_router

__all__ = ['search_router', 'quotes_router', 'favorites_router', 'history_router', 'admin_router']
