"""
Create gyms, members, attendance, member_badges and leads tables

Revision ID: c7e1a9d2f3b4
Revises:
Create Date: 2025-09-01 00:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'c7e1a9d2f3b4'
down_revision = None
branch_labels = None
depends_on = None

LEAD_SOURCES = ('GYM_PAGE', 'REFERRAL', 'TRIAL', 'WALKIN', 'OTHER')
LEAD_STATUSES = ('NEW', 'CONTACTED', 'CONVERTED', 'LOST')


def upgrade():
    op.create_table(
        'gyms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='Asia/Kolkata'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_gyms')
    )
    op.create_index('ix_gyms_id', 'gyms', ['id'])
    op.create_index('ix_gyms_slug', 'gyms', ['slug'], unique=True)

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('join_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id'], name='fk_members_gym_id_gyms'),
        sa.PrimaryKeyConstraint('id', name='pk_members'),
        sa.UniqueConstraint('gym_id', 'phone', name='uq_member_gym_phone'),
        sa.UniqueConstraint('gym_id', 'user_id', name='uq_member_gym_user')
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_gym_id', 'members', ['gym_id'])
    op.create_index('ix_members_user_id', 'members', ['user_id'])
    op.create_index('ix_members_is_active', 'members', ['is_active'])

    op.create_table(
        'member_badges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('badge_type', sa.String(length=50), nullable=False),
        sa.Column('earned_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['member_id'], ['members.id'],
            name='fk_member_badges_member_id_members',
            ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_member_badges'),
        # Un badge de cada tipo por miembro; el INSERT ... ON CONFLICT depende de esta constraint
        sa.UniqueConstraint('member_id', 'badge_type', name='uq_member_badge_type')
    )
    op.create_index('ix_member_badges_id', 'member_badges', ['id'])
    op.create_index('ix_member_badges_member_id', 'member_badges', ['member_id'])

    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), nullable=False),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], name='fk_attendance_member_id_members'),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id'], name='fk_attendance_gym_id_gyms'),
        sa.PrimaryKeyConstraint('id', name='pk_attendance'),
        # Un check-in por miembro, gimnasio y día civil
        sa.UniqueConstraint('member_id', 'gym_id', 'check_in_date', name='uq_attendance_member_gym_date')
    )
    op.create_index('ix_attendance_id', 'attendance', ['id'])
    op.create_index('ix_attendance_gym_date', 'attendance', ['gym_id', 'check_in_date'])
    op.create_index('ix_attendance_member_checked_in_at', 'attendance', ['member_id', 'checked_in_at'])

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('source', sa.Enum(*LEAD_SOURCES, name='leadsource'), nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum(*LEAD_STATUSES, name='leadstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id'], name='fk_leads_gym_id_gyms'),
        sa.ForeignKeyConstraint(['referrer_id'], ['members.id'], name='fk_leads_referrer_id_members'),
        sa.PrimaryKeyConstraint('id', name='pk_leads')
    )
    op.create_index('ix_leads_id', 'leads', ['id'])
    op.create_index('ix_leads_gym_id', 'leads', ['gym_id'])
    op.create_index('ix_leads_referrer_id', 'leads', ['referrer_id'])
    op.create_index('ix_leads_status', 'leads', ['status'])


def downgrade():
    op.drop_table('leads')
    op.drop_table('attendance')
    op.drop_table('member_badges')
    op.drop_table('members')
    op.drop_table('gyms')
    sa.Enum(name='leadstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='leadsource').drop(op.get_bind(), checkfirst=True)
