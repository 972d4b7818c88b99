"""create weather tables

Revision ID: 5c2d7e41a9b0
Revises:
Create Date: 2026-10-19 09:12:44.301562

Creates the locations reference table and the three append-only record
tables. Record rows reference locations with ON DELETE SET NULL.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2d7e41a9b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('longitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('location_type', sa.String(length=50), nullable=False),
        sa.Column('airport_code', sa.String(length=10), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "location_type != 'airport' OR "
            "(airport_code IS NOT NULL AND airport_code != '')",
            name='ck_location_airport_code',
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('airport_code'),
    )
    op.create_index('ix_locations_name', 'locations', ['name'])
    op.create_index('ix_locations_location_type', 'locations', ['location_type'])
    op.create_index('idx_location_coordinates', 'locations', ['latitude', 'longitude'])

    op.create_table(
        'airport_weather',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=True),
        sa.Column('airport_code', sa.String(length=10), nullable=False),
        sa.Column('report_type', sa.String(length=10), nullable=False),
        sa.Column('observation_time', sa.DateTime(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column('longitude', sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column('raw_text', sa.Text(), nullable=False),
        sa.Column('report_data', sa.JSON(), nullable=True),
        sa.Column('temperature_celsius', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('dewpoint_celsius', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('wind_speed_knots', sa.Integer(), nullable=True),
        sa.Column('wind_direction', sa.Integer(), nullable=True),
        sa.Column('wind_gust_knots', sa.Integer(), nullable=True),
        sa.Column('visibility_miles', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('altimeter_inches', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('flight_category', sa.String(length=10), nullable=True),
        sa.Column('ceiling_feet', sa.Integer(), nullable=True),
        sa.Column('sky_condition', sa.String(length=255), nullable=True),
        sa.Column('weather_conditions', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_airport_weather_location_id', 'airport_weather', ['location_id'])
    op.create_index('ix_airport_weather_report_type', 'airport_weather', ['report_type'])
    op.create_index(
        'idx_airport_code_observation', 'airport_weather', ['airport_code', 'observation_time']
    )
    op.create_index('idx_airport_fetched_active', 'airport_weather', ['fetched_at', 'is_active'])

    op.create_table(
        'weather_forecasts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=True),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('forecast_time', sa.DateTime(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_to', sa.DateTime(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('longitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('forecast_data', sa.JSON(), nullable=False),
        sa.Column('temperature_fahrenheit', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('temperature_celsius', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('precipitation_probability', sa.Integer(), nullable=True),
        sa.Column('wind_speed_mph', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('wind_direction', sa.Integer(), nullable=True),
        sa.Column('humidity', sa.Integer(), nullable=True),
        sa.Column('weather_short_description', sa.String(length=255), nullable=True),
        sa.Column('weather_description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_weather_forecasts_source', 'weather_forecasts', ['source'])
    op.create_index(
        'idx_forecast_location_valid_from', 'weather_forecasts', ['location_id', 'valid_from']
    )
    op.create_index('idx_forecast_fetched_active', 'weather_forecasts', ['fetched_at', 'is_active'])

    op.create_table(
        'storm_advisories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('storm_id', sa.String(length=50), nullable=False),
        sa.Column('storm_name', sa.String(length=100), nullable=True),
        sa.Column('basin', sa.String(length=10), nullable=False),
        sa.Column('storm_number', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('advisory_time', sa.DateTime(), nullable=False),
        sa.Column('forecast_time', sa.DateTime(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column('longitude', sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column('category', sa.Integer(), nullable=True),
        sa.Column('max_sustained_winds_knots', sa.Integer(), nullable=True),
        sa.Column('max_sustained_winds_mph', sa.Integer(), nullable=True),
        sa.Column('min_central_pressure_mb', sa.Integer(), nullable=True),
        sa.Column('movement_direction', sa.Integer(), nullable=True),
        sa.Column('movement_speed_knots', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('movement_speed_mph', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('classification', sa.String(length=50), nullable=True),
        sa.Column('intensity', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('forecast_data', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_storm_id_advisory_time', 'storm_advisories', ['storm_id', 'advisory_time'])
    op.create_index('idx_storm_fetched_active', 'storm_advisories', ['fetched_at', 'is_active'])


def downgrade() -> None:
    op.drop_table('storm_advisories')
    op.drop_table('weather_forecasts')
    op.drop_table('airport_weather')
    op.drop_table('locations')
