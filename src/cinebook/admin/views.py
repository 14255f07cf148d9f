"""SQLAdmin model and tool views."""

from sqladmin import BaseView, ModelView, expose
from starlette.requests import Request
from starlette.responses import HTMLResponse

from cinebook.models import Booking, Hall, Movie, Seat, Showtime, User
from cinebook.tasks.sweeps import run_expiry_sweep, run_showtime_sweep


class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.username, User.email, User.phone, User.role]
    column_searchable_list = [User.username, User.email]
    column_sortable_list = [User.username]


class MovieAdmin(ModelView, model=Movie):
    column_list = [Movie.id, Movie.title, Movie.duration_minutes]
    column_searchable_list = [Movie.title]
    column_sortable_list = [Movie.title]


class HallAdmin(ModelView, model=Hall):
    column_list = [Hall.id, Hall.hall_name, Hall.screen_type, Hall.status, Hall.deleted_at]
    column_searchable_list = [Hall.hall_name]


class SeatAdmin(ModelView, model=Seat):
    column_list = [
        Seat.id,
        Seat.hall_id,
        Seat.row,
        Seat.seat_number,
        Seat.seat_type,
        Seat.status,
        Seat.price,
    ]
    column_sortable_list = [Seat.row, Seat.seat_number, Seat.status]


class ShowtimeAdmin(ModelView, model=Showtime):
    column_list = [
        Showtime.id,
        Showtime.movie_id,
        Showtime.hall_id,
        Showtime.start_time,
        Showtime.end_time,
        Showtime.status,
        Showtime.deleted_at,
    ]
    column_sortable_list = [Showtime.start_time, Showtime.status]
    # Overlap checks live in the API; create and edit go through it
    can_create = False
    can_edit = False


class BookingAdmin(ModelView, model=Booking):
    column_list = [
        Booking.reference_code,
        Booking.user_id,
        Booking.showtime_id,
        Booking.seat_count,
        Booking.total_price,
        Booking.payment_method,
        Booking.payment_status,
        Booking.booking_status,
        Booking.expired_at,
        Booking.deleted_at,
    ]
    column_searchable_list = [Booking.reference_code]
    column_sortable_list = [Booking.booking_date, Booking.total_price]
    # Seat holds must move with the booking, so writes go through the API
    can_create = False
    can_edit = False
    can_delete = False


_TOOLS_TEMPLATE = """\
{% extends "sqladmin/layout.html" %}
{% block content %}
<div class="container-fluid p-4">
  <h2>Sweeps</h2>
  <form method="post" class="mt-3 d-flex align-items-center gap-2 flex-wrap">
    <button name="action" value="expiry" class="btn btn-primary">Cancel Expired Bookings</button>
    <button name="action" value="showtimes" class="btn btn-secondary">Complete Finished Showtimes</button>
  </form>
  {% if message %}
  <div class="alert alert-success mt-3">{{ message }}</div>
  {% endif %}
</div>
{% endblock %}
"""


class SweepToolsView(BaseView):
    name = "Tools"
    icon = "fa-wrench"

    @expose("/tools", methods=["GET", "POST"])
    async def tools(self, request: Request) -> HTMLResponse:
        message: str | None = None

        if request.method == "POST":
            form = await request.form()
            action = form.get("action")
            if action == "expiry":
                cancelled = await run_expiry_sweep()
                message = f"Cancelled {cancelled} expired bookings."
            elif action == "showtimes":
                completed = await run_showtime_sweep()
                message = f"Completed {completed} showtimes."

        tmpl = self.templates.env.from_string(_TOOLS_TEMPLATE)
        content = await tmpl.render_async(request=request, message=message)
        return HTMLResponse(content)
