"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create movies table
    op.create_table(
        'movies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('poster_url', sa.String(length=1000), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_movies_title'), 'movies', ['title'], unique=False)

    # Create halls table
    op.create_table(
        'halls',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('hall_name', sa.String(length=100), nullable=False),
        sa.Column('screen_type', sa.String(length=20), nullable=False, server_default='standard'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_halls_hall_name'), 'halls', ['hall_name'], unique=False)
    op.create_index(op.f('ix_halls_deleted_at'), 'halls', ['deleted_at'], unique=False)

    # Create seats table
    op.create_table(
        'seats',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('hall_id', sa.Uuid(), nullable=False),
        sa.Column('row', sa.String(length=5), nullable=False),
        sa.Column('seat_number', sa.String(length=10), nullable=False),
        sa.Column('seat_type', sa.String(length=20), nullable=False, server_default='regular'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['hall_id'], ['halls.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hall_id', 'row', 'seat_number', name='uq_seats_hall_row_number')
    )
    op.create_index(op.f('ix_seats_hall_id'), 'seats', ['hall_id'], unique=False)
    op.create_index(op.f('ix_seats_status'), 'seats', ['status'], unique=False)
    op.create_index(op.f('ix_seats_deleted_at'), 'seats', ['deleted_at'], unique=False)

    # Create showtimes table
    op.create_table(
        'showtimes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('movie_id', sa.Uuid(), nullable=False),
        sa.Column('hall_id', sa.Uuid(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('language', sa.String(length=50), nullable=False, server_default='Original'),
        sa.Column('subtitle', sa.String(length=50), nullable=False, server_default='Original'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['movie_id'], ['movies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['hall_id'], ['halls.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_showtimes_start_time'), 'showtimes', ['start_time'], unique=False)
    op.create_index(op.f('ix_showtimes_deleted_at'), 'showtimes', ['deleted_at'], unique=False)
    op.create_index('ix_showtimes_hall_start', 'showtimes', ['hall_id', 'start_time'], unique=False)
    op.create_index('ix_showtimes_movie_start', 'showtimes', ['movie_id', 'start_time'], unique=False)

    # Create bookings table
    op.create_table(
        'bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reference_code', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('showtime_id', sa.Uuid(), nullable=False),
        sa.Column('seat_ids', sa.JSON(), nullable=False),
        sa.Column('seat_count', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('payment_id', sa.String(length=100), nullable=True),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='Pending'),
        sa.Column('booking_status', sa.String(length=20), nullable=False, server_default='Confirmed'),
        sa.Column('booking_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('noted', sa.Text(), nullable=False, server_default=''),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['showtime_id'], ['showtimes.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_reference_code'), 'bookings', ['reference_code'], unique=True)
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_showtime_id'), 'bookings', ['showtime_id'], unique=False)
    op.create_index(op.f('ix_bookings_payment_status'), 'bookings', ['payment_status'], unique=False)
    op.create_index(op.f('ix_bookings_booking_status'), 'bookings', ['booking_status'], unique=False)
    op.create_index(op.f('ix_bookings_booking_date'), 'bookings', ['booking_date'], unique=False)
    op.create_index(op.f('ix_bookings_deleted_at'), 'bookings', ['deleted_at'], unique=False)

    # Create seat_holds table
    op.create_table(
        'seat_holds',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('showtime_id', sa.Uuid(), nullable=False),
        sa.Column('seat_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['showtime_id'], ['showtimes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('showtime_id', 'seat_id', name='uq_seat_holds_showtime_seat')
    )
    op.create_index(op.f('ix_seat_holds_showtime_id'), 'seat_holds', ['showtime_id'], unique=False)
    op.create_index(op.f('ix_seat_holds_seat_id'), 'seat_holds', ['seat_id'], unique=False)
    op.create_index(op.f('ix_seat_holds_booking_id'), 'seat_holds', ['booking_id'], unique=False)


def downgrade() -> None:
    op.drop_table('seat_holds')
    op.drop_table('bookings')
    op.drop_table('showtimes')
    op.drop_table('seats')
    op.drop_table('halls')
    op.drop_table('movies')
    op.drop_table('users')
