"""
FastAPI routers grouped by domain (auth, members, credits, payments, admin).

Each module exposes an APIRouter included by ``ppd.app.create_app``. Services
are read from ``request.app.state`` so tests can build an app around any store.
"""
