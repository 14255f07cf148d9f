"""Admin UI mounted under /admin."""

from fastapi import FastAPI
from sqladmin import Admin

from cinebook.admin.auth import AdminAuth
from cinebook.admin.views import (
    BookingAdmin,
    HallAdmin,
    MovieAdmin,
    SeatAdmin,
    ShowtimeAdmin,
    SweepToolsView,
    UserAdmin,
)
from cinebook.config import settings
from cinebook.database import engine

ADMIN_VIEWS = [
    BookingAdmin,
    ShowtimeAdmin,
    SeatAdmin,
    HallAdmin,
    MovieAdmin,
    UserAdmin,
    SweepToolsView,
]


def setup_admin(app: FastAPI) -> Admin:
    auth = AdminAuth(secret_key=settings.admin_secret_key)
    admin = Admin(app, engine, authentication_backend=auth, title="CineBook Admin")
    for view in ADMIN_VIEWS:
        admin.add_view(view)
    return admin
