"""create_risk_workflow_tables

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-16 09:12:41.203518

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b64'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Risk register
    op.create_table(
        'risks',
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.String(length=64), nullable=False),
        sa.Column('risk_code', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('initial_severity', sa.String(length=20), nullable=False),
        sa.Column('documentation', sa.JSON(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False),
        sa.Column('likelihood', sa.String(length=20), nullable=True),
        sa.Column('impact', sa.String(length=20), nullable=True),
        sa.Column('inherent_risk', sa.String(length=20), nullable=True),
        sa.Column('residual_risk', sa.String(length=20), nullable=True),
        sa.Column('reporter_id', sa.String(length=64), nullable=False),
        sa.Column('grc_sme_id', sa.String(length=64), nullable=True),
        sa.Column('risk_assessor_id', sa.String(length=64), nullable=True),
        sa.Column('risk_owner_id', sa.String(length=64), nullable=True),
        sa.Column('treatment_plan', sa.String(length=20), nullable=True,
                  comment='mitigate/accept/transfer/avoid'),
        sa.Column('treatment_status', sa.String(length=20), nullable=True,
                  comment='pending/in_progress/completed'),
        sa.Column('treatment_notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('risk_id'),
        sa.UniqueConstraint('organization_id', 'risk_code', name='uq_risk_org_code')
    )
    op.create_index(op.f('ix_risks_organization_id'), 'risks', ['organization_id'], unique=False)
    op.create_index(op.f('ix_risks_status'), 'risks', ['status'], unique=False)

    op.create_table(
        'risk_id_sequences',
        sa.Column('organization_id', sa.String(length=64), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('organization_id')
    )

    # Assessment (one per risk)
    op.create_table(
        'risk_assessments',
        sa.Column('assessment_id', sa.Integer(), nullable=False),
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False),
        sa.Column('risk_assessor_id', sa.String(length=64), nullable=False),
        sa.Column('grc_sme_id', sa.String(length=64), nullable=True),
        sa.Column('threat_description', sa.Text(), nullable=True),
        sa.Column('vulnerabilities', sa.Text(), nullable=True),
        sa.Column('likelihood', sa.String(length=20), nullable=True),
        sa.Column('likelihood_rationale', sa.Text(), nullable=True),
        sa.Column('impact', sa.String(length=20), nullable=True),
        sa.Column('impact_rationale', sa.Text(), nullable=True),
        sa.Column('impact_categories', sa.JSON(), nullable=True),
        sa.Column('calculated_risk_level', sa.String(length=20), nullable=True,
                  comment='Derived from likelihood x impact'),
        sa.Column('recommended_owner_id', sa.String(length=64), nullable=True),
        sa.Column('assessment_notes', sa.Text(), nullable=True),
        sa.Column('treatment_recommendation', sa.Text(), nullable=True),
        sa.Column('grc_review_notes', sa.Text(), nullable=True),
        sa.Column('grc_declined_reason', sa.Text(), nullable=True),
        sa.Column('assessor_submitted_at', sa.DateTime(), nullable=True),
        sa.Column('grc_approved_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('assessment_id')
    )
    op.create_index(op.f('ix_risk_assessments_risk_id'), 'risk_assessments', ['risk_id'], unique=True)

    # Treatment (one per risk)
    op.create_table(
        'risk_treatments',
        sa.Column('treatment_id', sa.Integer(), nullable=False),
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False),
        sa.Column('risk_owner_id', sa.String(length=64), nullable=True),
        sa.Column('grc_sme_id', sa.String(length=64), nullable=True),
        sa.Column('treatment_decision', sa.String(length=20), nullable=True),
        sa.Column('treatment_justification', sa.Text(), nullable=True),
        sa.Column('mitigation_description', sa.Text(), nullable=True),
        sa.Column('mitigation_target_date', sa.DateTime(), nullable=True),
        sa.Column('transfer_to', sa.String(length=255), nullable=True),
        sa.Column('transfer_cost', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('avoid_strategy', sa.Text(), nullable=True),
        sa.Column('acceptance_rationale', sa.Text(), nullable=True),
        sa.Column('acceptance_expires_at', sa.DateTime(), nullable=True),
        sa.Column('executive_approval_required', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('executive_approver_id', sa.String(length=64), nullable=True),
        sa.Column('executive_approval_status', sa.String(length=20), nullable=True),
        sa.Column('executive_approval_notes', sa.Text(), nullable=True),
        sa.Column('executive_denied_reason', sa.Text(), nullable=True),
        sa.Column('executive_approved_at', sa.DateTime(), nullable=True),
        sa.Column('mitigation_status', sa.String(length=20), nullable=True),
        sa.Column('mitigation_progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_progress_update', sa.DateTime(), nullable=True),
        sa.Column('mitigation_actual_date', sa.DateTime(), nullable=True),
        sa.Column('residual_likelihood', sa.String(length=20), nullable=True),
        sa.Column('residual_impact', sa.String(length=20), nullable=True),
        sa.Column('residual_risk_level', sa.String(length=20), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            'mitigation_progress >= 0 AND mitigation_progress <= 100',
            name='chk_treatment_progress_range'
        ),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('treatment_id')
    )
    op.create_index(op.f('ix_risk_treatments_risk_id'), 'risk_treatments', ['risk_id'], unique=True)

    op.create_table(
        'risk_treatment_updates',
        sa.Column('update_id', sa.Integer(), nullable=False),
        sa.Column('treatment_id', sa.Integer(), nullable=False),
        sa.Column('update_type', sa.String(length=20), nullable=False,
                  comment='progress/delay/cancellation/completion'),
        sa.Column('previous_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('new_target_date', sa.DateTime(), nullable=True),
        sa.Column('delay_reason', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completion_evidence', sa.Text(), nullable=True),
        sa.Column('effectiveness_notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['treatment_id'], ['risk_treatments.treatment_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('update_id')
    )
    op.create_index(op.f('ix_risk_treatment_updates_treatment_id'), 'risk_treatment_updates', ['treatment_id'], unique=False)

    op.create_table(
        'risk_history',
        sa.Column('history_id', sa.Integer(), nullable=False),
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.String(length=64), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('history_id')
    )
    op.create_index(op.f('ix_risk_history_risk_id'), 'risk_history', ['risk_id'], unique=False)

    # Links to assets, controls and scenarios owned by other services
    op.create_table(
        'risk_assets',
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('risk_id', 'asset_id')
    )
    op.create_table(
        'risk_controls',
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('control_id', sa.String(length=64), nullable=False),
        sa.Column('effectiveness', sa.String(length=20), nullable=False, server_default='partial'),
        sa.CheckConstraint(
            "effectiveness IN ('none', 'partial', 'full')",
            name='chk_risk_control_effectiveness'
        ),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('risk_id', 'control_id')
    )
    op.create_table(
        'risk_scenario_links',
        sa.Column('risk_id', sa.Integer(), nullable=False),
        sa.Column('scenario_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['risk_id'], ['risks.risk_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('risk_id', 'scenario_id')
    )

    # Side-effect stores
    op.create_table(
        'audit_logs',
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=False),
        sa.Column('entity_name', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('log_id')
    )
    op.create_index(op.f('ix_audit_logs_log_id'), 'audit_logs', ['log_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_organization_id'), 'audit_logs', ['organization_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('notification_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=False),
        sa.Column('severity', sa.String(length=20), nullable=False, server_default='info'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "severity IN ('info', 'success', 'warning', 'error')",
            name='chk_notification_severity'
        ),
        sa.PrimaryKeyConstraint('notification_id')
    )
    op.create_index(op.f('ix_notifications_organization_id'), 'notifications', ['organization_id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_notifications_user_id'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_organization_id'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index(op.f('ix_audit_logs_entity_id'), table_name='audit_logs')
    op.drop_index(op.f('ix_audit_logs_organization_id'), table_name='audit_logs')
    op.drop_index(op.f('ix_audit_logs_log_id'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('risk_scenario_links')
    op.drop_table('risk_controls')
    op.drop_table('risk_assets')
    op.drop_index(op.f('ix_risk_history_risk_id'), table_name='risk_history')
    op.drop_table('risk_history')
    op.drop_index(op.f('ix_risk_treatment_updates_treatment_id'), table_name='risk_treatment_updates')
    op.drop_table('risk_treatment_updates')
    op.drop_index(op.f('ix_risk_treatments_risk_id'), table_name='risk_treatments')
    op.drop_table('risk_treatments')
    op.drop_index(op.f('ix_risk_assessments_risk_id'), table_name='risk_assessments')
    op.drop_table('risk_assessments')
    op.drop_table('risk_id_sequences')
    op.drop_index(op.f('ix_risks_status'), table_name='risks')
    op.drop_index(op.f('ix_risks_organization_id'), table_name='risks')
    op.drop_table('risks')
