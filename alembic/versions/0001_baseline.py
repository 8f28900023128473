"""Baseline migration - users, leads, KYP, pre-auth, admission, chat, notifications

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-19

Fresh baseline for the case workflow service.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        for name in names
    ]


def upgrade() -> None:
    """Create case workflow tables."""

    # ==========================================================================
    # Users & teams
    # ==========================================================================
    op.create_table(
        'teams',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        *_timestamps('created_at'),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='SET NULL')),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default='1', nullable=False),
        *_timestamps('created_at'),
    )

    # ==========================================================================
    # Leads & stage history
    # ==========================================================================
    op.create_table(
        'leads',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_ref', sa.String(40), nullable=False, unique=True),
        sa.Column('patient_name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(20)),
        sa.Column('city', sa.String(120)),
        sa.Column('insurance_name', sa.String(255)),
        sa.Column('hospital_name', sa.String(255)),
        sa.Column('ipd_admission_date', sa.Date()),
        sa.Column('ipd_discharge_date', sa.Date()),
        sa.Column('bd_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='SET NULL')),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('case_stage', sa.String(50), nullable=False),
        sa.Column('pipeline_stage', sa.String(50), nullable=False),
        sa.Column('lost_reason', sa.Text()),
        sa.Column('lost_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at', 'updated_at'),
    )
    op.create_index('idx_leads_bd_stage', 'leads', ['bd_id', 'case_stage'])
    op.create_index('idx_leads_team', 'leads', ['team_id'])

    op.create_table(
        'case_stage_history',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_stage', sa.String(50)),
        sa.Column('to_stage', sa.String(50), nullable=False),
        sa.Column('changed_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('note', sa.Text()),
        *_timestamps('changed_at'),
    )
    op.create_index('idx_stage_history_lead', 'case_stage_history', ['lead_id', 'changed_at'])

    # ==========================================================================
    # KYP, pre-auth, follow-up
    # ==========================================================================
    op.create_table(
        'kyp_submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('submitted_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('aadhar', sa.String(50)),
        sa.Column('pan', sa.String(50)),
        sa.Column('insurance_card', sa.String(255)),
        sa.Column('location', sa.String(255)),
        sa.Column('area', sa.String(255)),
        sa.Column('remark', sa.Text()),
        sa.Column('aadhar_file_url', sa.Text()),
        sa.Column('pan_file_url', sa.Text()),
        sa.Column('insurance_card_file_url', sa.Text()),
        sa.Column('insurance_card_files', sa.JSON()),
        sa.Column('other_files', sa.JSON()),
        sa.Column('disease', sa.Text()),
        sa.Column('disease_photos', sa.JSON()),
        sa.Column('patient_consent', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('detailed_submitted_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at', 'updated_at'),
    )

    op.create_table(
        'pre_authorizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'kyp_submission_id', sa.Uuid(),
            sa.ForeignKey('kyp_submissions.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column('sum_insured', sa.String(50)),
        sa.Column('room_rent', sa.String(50)),
        sa.Column('capping', sa.String(50)),
        sa.Column('copay', sa.String(50)),
        sa.Column('icu', sa.String(50)),
        sa.Column('insurance', sa.String(255)),
        sa.Column('tpa', sa.String(255)),
        sa.Column('hospital_name_suggestion', sa.String(255)),
        sa.Column('hospital_suggestions', sa.JSON()),
        sa.Column('room_types', sa.JSON()),
        sa.Column('requested_hospital_name', sa.String(255)),
        sa.Column('requested_room_type', sa.String(100)),
        sa.Column('disease_description', sa.Text()),
        sa.Column('disease_images', sa.JSON()),
        sa.Column('expected_admission_date', sa.Date()),
        sa.Column('expected_surgery_date', sa.Date()),
        sa.Column('is_new_hospital_request', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('new_hospital_pre_auth_raised', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('pre_auth_raised_at', sa.DateTime(timezone=True)),
        sa.Column('pre_auth_raised_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('approval_status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('approved_amount', sa.Numeric(12, 2)),
        sa.Column('rejection_reason', sa.Text()),
        sa.Column('handled_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('handled_at', sa.DateTime(timezone=True)),
        sa.Column('approved_at', sa.DateTime(timezone=True)),
        sa.Column('rejected_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at', 'updated_at'),
    )

    op.create_table(
        'hospital_suggestions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'pre_auth_id', sa.Uuid(),
            sa.ForeignKey('pre_authorizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('hospital_name', sa.String(255), nullable=False),
        sa.Column('tentative_bill', sa.String(50)),
        sa.Column('room_rent_general', sa.String(50)),
        sa.Column('room_rent_private', sa.String(50)),
        sa.Column('room_rent_icu', sa.String(50)),
        sa.Column('notes', sa.Text()),
        *_timestamps('created_at'),
    )

    op.create_table(
        'insurance_queries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'pre_auth_id', sa.Uuid(),
            sa.ForeignKey('pre_authorizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('raised_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps('raised_at'),
        sa.Column('answer', sa.Text()),
        sa.Column('answered_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('answered_at', sa.DateTime(timezone=True)),
        sa.Column('resolved_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('resolved_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_insurance_queries_pre_auth_id', 'insurance_queries', ['pre_auth_id'])
    op.create_index('ix_insurance_queries_status', 'insurance_queries', ['status'])

    op.create_table(
        'patient_follow_ups',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'kyp_submission_id', sa.Uuid(),
            sa.ForeignKey('kyp_submissions.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column('admission_date', sa.Date()),
        sa.Column('surgery_date', sa.Date()),
        sa.Column('prescription', sa.Text()),
        sa.Column('report', sa.Text()),
        sa.Column('hospital_name', sa.String(255)),
        sa.Column('doctor_name', sa.String(255)),
        sa.Column('prescription_file_url', sa.Text()),
        sa.Column('report_file_url', sa.Text()),
        sa.Column('updated_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps('created_at', 'updated_at'),
    )

    # ==========================================================================
    # Admission
    # ==========================================================================
    op.create_table(
        'admission_records',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('admission_date', sa.Date(), nullable=False),
        sa.Column('admission_time', sa.String(20), nullable=False),
        sa.Column('admitting_hospital', sa.String(255), nullable=False),
        sa.Column('hospital_address', sa.Text(), nullable=False),
        sa.Column('google_map_location', sa.Text()),
        sa.Column('surgery_date', sa.Date(), nullable=False),
        sa.Column('surgery_time', sa.String(20), nullable=False),
        sa.Column('tpa', sa.String(255), nullable=False),
        sa.Column('instrument', sa.Text()),
        sa.Column('implant_consumables', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('initiated_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('ipd_status', sa.String(30)),
        sa.Column('ipd_status_reason', sa.Text()),
        sa.Column('ipd_status_notes', sa.Text()),
        sa.Column('ipd_status_updated_at', sa.DateTime(timezone=True)),
        sa.Column('ipd_status_updated_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('new_surgery_date', sa.Date()),
        sa.Column('ipd_discharge_date', sa.Date()),
        *_timestamps('created_at', 'updated_at'),
    )

    # ==========================================================================
    # Chat & notifications
    # ==========================================================================
    op.create_table(
        'case_chat_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps('created_at'),
    )
    op.create_index('idx_case_chat_lead', 'case_chat_messages', ['lead_id', 'created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text()),
        sa.Column('link', sa.String(500)),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', sa.Uuid()),
        sa.Column('read_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at'),
    )
    op.create_index('idx_notif_user_unread', 'notifications', ['user_id', 'read_at', 'created_at'])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'notifications',
        'case_chat_messages',
        'admission_records',
        'patient_follow_ups',
        'insurance_queries',
        'hospital_suggestions',
        'pre_authorizations',
        'kyp_submissions',
        'case_stage_history',
        'leads',
        'users',
        'teams',
    ):
        op.drop_table(table)
