"""create night supervision tables

Revision ID: night_supervision_init
Revises:
Create Date: 2026-10-19 21:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = 'night_supervision_init'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


shift_status = sa.Enum('en_curso', 'completada', 'incompleta', 'cancelada', name='night_shift_status')
alert_type = sa.Enum(
    'missing_call', 'missing_photo', 'missing_camera_review', 'non_conformity', 'contract_alert',
    name='night_alert_type',
)
alert_severity = sa.Enum('low', 'medium', 'high', 'critical', name='night_alert_severity')
alert_entity = sa.Enum('call', 'camera_review', 'resource', name='night_alert_entity')


def _audit_columns():
    return [
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Directory tables (owned by the staffing screens, created here for standalone deployments)
    op.create_table(
        'units',
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('unit_id'),
    )

    op.create_table(
        'personnel',
        sa.Column('personnel_id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('assigned_shift', sa.String(), nullable=True),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('personnel_status', sa.String(), nullable=False, server_default='activo'),
        sa.Column('in_training', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('training_start_date', sa.Date(), nullable=True),
        sa.Column('contract_generated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['unit_id'], ['units.unit_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('personnel_id'),
    )
    op.create_index(op.f('ix_personnel_unit_id'), 'personnel', ['unit_id'], unique=False)

    # Shifts
    op.create_table(
        'night_supervision_shifts',
        sa.Column('shift_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('unit_name', sa.String(), nullable=False),
        sa.Column('supervisor_id', sa.Uuid(), nullable=False),
        sa.Column('supervisor_name', sa.String(), nullable=False),
        sa.Column('shift_start', sa.Time(), nullable=False),
        sa.Column('shift_end', sa.Time(), nullable=False),
        sa.Column('status', shift_status, nullable=False),
        sa.Column('completion_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('shift_id'),
        sa.UniqueConstraint('date', 'unit_id', 'supervisor_id', name='uq_night_shifts_date_unit_supervisor'),
    )
    op.create_index(op.f('ix_night_supervision_shifts_date'), 'night_supervision_shifts', ['date'], unique=False)
    op.create_index(op.f('ix_night_supervision_shifts_unit_id'), 'night_supervision_shifts', ['unit_id'], unique=False)
    op.create_index(
        op.f('ix_night_supervision_shifts_supervisor_id'), 'night_supervision_shifts', ['supervisor_id'], unique=False
    )

    # Calls
    op.create_table(
        'night_supervision_calls',
        sa.Column('call_id', sa.Uuid(), nullable=False),
        sa.Column('shift_id', sa.Uuid(), nullable=False),
        sa.Column('worker_id', sa.Uuid(), nullable=False),
        sa.Column('worker_name', sa.String(), nullable=False),
        sa.Column('worker_phone', sa.String(), nullable=True),
        sa.Column('call_number', sa.SmallInteger(), nullable=False),
        sa.Column('scheduled_time', sa.Time(), nullable=False),
        sa.Column('actual_time', sa.Time(), nullable=True),
        sa.Column('answered', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('photo_received', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('photo_url', sa.String(), nullable=True),
        sa.Column('photo_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('on_rest', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('non_conformity', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('non_conformity_description', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['shift_id'], ['night_supervision_shifts.shift_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('call_id'),
        sa.UniqueConstraint('shift_id', 'worker_id', 'call_number', name='uq_night_calls_shift_worker_number'),
        sa.CheckConstraint('call_number BETWEEN 1 AND 3', name='ck_night_calls_number'),
    )
    op.create_index(op.f('ix_night_supervision_calls_shift_id'), 'night_supervision_calls', ['shift_id'], unique=False)
    op.create_index(op.f('ix_night_supervision_calls_worker_id'), 'night_supervision_calls', ['worker_id'], unique=False)

    # Camera reviews
    op.create_table(
        'night_supervision_camera_reviews',
        sa.Column('review_id', sa.Uuid(), nullable=False),
        sa.Column('shift_id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('unit_name', sa.String(), nullable=False),
        sa.Column('review_number', sa.SmallInteger(), nullable=False),
        sa.Column('scheduled_time', sa.Time(), nullable=False),
        sa.Column('actual_time', sa.Time(), nullable=True),
        sa.Column('screenshot_url', sa.String(), nullable=True),
        sa.Column('screenshot_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cameras_reviewed', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('non_conformity', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('non_conformity_description', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['shift_id'], ['night_supervision_shifts.shift_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('review_id'),
        sa.UniqueConstraint('shift_id', 'review_number', name='uq_night_reviews_shift_number'),
        sa.CheckConstraint('review_number BETWEEN 1 AND 3', name='ck_night_reviews_number'),
    )
    op.create_index(
        op.f('ix_night_supervision_camera_reviews_shift_id'), 'night_supervision_camera_reviews', ['shift_id'], unique=False
    )

    # Alerts
    op.create_table(
        'night_supervision_alerts',
        sa.Column('alert_id', sa.Uuid(), nullable=False),
        sa.Column('shift_id', sa.Uuid(), nullable=False),
        sa.Column('type', alert_type, nullable=False),
        sa.Column('severity', alert_severity, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('related_entity_type', alert_entity, nullable=True),
        sa.Column('related_entity_id', sa.Uuid(), nullable=True),
        sa.Column('resolved', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('resolved_by', sa.Uuid(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['shift_id'], ['night_supervision_shifts.shift_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('alert_id'),
    )
    op.create_index(op.f('ix_night_supervision_alerts_shift_id'), 'night_supervision_alerts', ['shift_id'], unique=False)
    op.create_index(
        op.f('ix_night_supervision_alerts_related_entity_id'), 'night_supervision_alerts', ['related_entity_id'], unique=False
    )
    # at most one open alert per (shift, type, checkpoint)
    op.create_index(
        'uq_night_alerts_open_key',
        'night_supervision_alerts',
        ['shift_id', 'type', 'related_entity_id'],
        unique=True,
        postgresql_where=sa.text('resolved = false'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('uq_night_alerts_open_key', table_name='night_supervision_alerts')
    op.drop_index(op.f('ix_night_supervision_alerts_related_entity_id'), table_name='night_supervision_alerts')
    op.drop_index(op.f('ix_night_supervision_alerts_shift_id'), table_name='night_supervision_alerts')
    op.drop_table('night_supervision_alerts')

    op.drop_index(op.f('ix_night_supervision_camera_reviews_shift_id'), table_name='night_supervision_camera_reviews')
    op.drop_table('night_supervision_camera_reviews')

    op.drop_index(op.f('ix_night_supervision_calls_worker_id'), table_name='night_supervision_calls')
    op.drop_index(op.f('ix_night_supervision_calls_shift_id'), table_name='night_supervision_calls')
    op.drop_table('night_supervision_calls')

    op.drop_index(op.f('ix_night_supervision_shifts_supervisor_id'), table_name='night_supervision_shifts')
    op.drop_index(op.f('ix_night_supervision_shifts_unit_id'), table_name='night_supervision_shifts')
    op.drop_index(op.f('ix_night_supervision_shifts_date'), table_name='night_supervision_shifts')
    op.drop_table('night_supervision_shifts')

    op.drop_index(op.f('ix_personnel_unit_id'), table_name='personnel')
    op.drop_table('personnel')
    op.drop_table('units')

    for enum in (alert_entity, alert_severity, alert_type, shift_status):
        enum.drop(op.get_bind(), checkfirst=True)
