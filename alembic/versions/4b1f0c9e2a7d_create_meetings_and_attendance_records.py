from alembic import op
import sqlalchemy as sa

revision = '4b1f0c9e2a7d'
down_revision = None
branch_labels = None
depends_on = None

meeting_channel_enum = sa.Enum(
    'presence_token', 'join_link',
    name='meeting_channel_enum',
)
meeting_participation_enum = sa.Enum(
    'open', 'restricted',
    name='meeting_participation_enum',
)
attendance_method_enum = sa.Enum(
    'token', 'link',
    name='attendance_method_enum',
)


def upgrade():
    op.create_table(
        'meetings',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('channel', meeting_channel_enum, nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('meeting_link', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('proof_token', sa.String(length=128), nullable=True),
        sa.Column('proof_issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('proof_paused', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('link_token', sa.String(length=128), nullable=True),
        sa.Column('geofence_lat', sa.Float(), nullable=True),
        sa.Column('geofence_lng', sa.Float(), nullable=True),
        sa.Column('geofence_radius_m', sa.Float(), nullable=True),
        sa.Column('participation', meeting_participation_enum, nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_meetings_scheduled_at', 'meetings', ['scheduled_at'])
    op.create_index('ix_meetings_is_active', 'meetings', ['is_active'])
    op.create_index('ix_meetings_created_by', 'meetings', ['created_by'])
    op.create_index('ix_meetings_link_token', 'meetings', ['link_token'], unique=True)

    op.create_table(
        'meeting_participants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('meeting_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['meeting_id'], ['meetings.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('meeting_id', 'user_id', name='uq_participant_meeting_user'),
    )

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('meeting_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('method', attendance_method_enum, nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('location_lat', sa.Float(), nullable=True),
        sa.Column('location_lng', sa.Float(), nullable=True),
        sa.Column('location_accuracy', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['meeting_id'], ['meetings.id']),
        # one record per (meeting, user), enforced by the store
        sa.UniqueConstraint('meeting_id', 'user_id', name='uq_attendance_meeting_user'),
    )
    op.create_index('ix_attendance_records_meeting_id', 'attendance_records', ['meeting_id'])
    op.create_index('ix_attendance_records_user_id', 'attendance_records', ['user_id'])


def downgrade():
    op.drop_table('attendance_records')
    op.drop_table('meeting_participants')
    op.drop_table('meetings')
    bind = op.get_bind()
    attendance_method_enum.drop(bind, checkfirst=True)
    meeting_participation_enum.drop(bind, checkfirst=True)
    meeting_channel_enum.drop(bind, checkfirst=True)
