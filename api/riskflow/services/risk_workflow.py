"""Risk lifecycle workflow service.

Each public method performs one workflow transition:

1. Load the risk (scoped to the caller's organization) and its sub-record
2. Ask riskflow.core.risk_transitions for the target state
3. Write the status change as a compare-and-swap UPDATE
4. Append exactly one RiskHistory entry and commit
5. Record an audit entry and send notifications

Steps 1-4 run in one transaction that is rolled back on any error. Step 5
runs after the commit and is best-effort.
"""
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from sqlalchemy import update, select
from sqlalchemy.orm import Session

from riskflow.core.config import settings
from riskflow.core.exceptions import RiskNotFoundError, InvalidStateError
from riskflow.core.risk_scoring import create_history_changes
from riskflow.core.risk_statuses import (
    RiskStatus,
    AssessmentStatus,
    TreatmentStatus,
    ReviewDecision,
    ExecutiveDecision,
    ExecutiveApprovalStatus,
    MitigationProgressStatus,
    ControlEffectiveness,
    TERMINAL_TREATMENT_STATUSES,
    TREATMENT_SUMMARY_STATUS,
)
from riskflow.core.risk_transitions import (
    require_risk_status,
    require_assessment_status,
    decide_validation,
    format_risk_code,
    decide_assessment_review,
    score_assessment,
    decide_treatment,
    decide_executive_approver,
    decide_executive,
    decide_mitigation_update,
    merge_residual,
)
from riskflow.core.time import utc_now, to_naive_utc
from riskflow.core.workflow_state import determine_current_stage, get_available_actions
from riskflow.models.risk import (
    Risk,
    RiskAssessment,
    RiskTreatment,
    RiskTreatmentUpdate,
    RiskHistory,
    RiskAsset,
    RiskControl,
    RiskIdSequence,
)
from riskflow.schemas.risk_workflow import (
    RiskIntakeCreate,
    AssessmentSubmitRequest,
    TreatmentDecisionRequest,
    MitigationUpdateRequest,
)
from riskflow.services.audit import AuditRecorder
from riskflow.services.notifications import (
    NotificationDispatcher,
    NotificationType,
    NotificationSeverity,
)

logger = logging.getLogger(__name__)

RISK_ENTITY = "risk"
STATE_UPDATE_LIMIT = 10
STATE_HISTORY_LIMIT = 20

MITIGATION_HISTORY_ACTIONS: Dict[MitigationProgressStatus, str] = {
    MitigationProgressStatus.ON_TRACK: "mitigation_progress_updated",
    MitigationProgressStatus.DELAYED: "mitigation_delayed",
    MitigationProgressStatus.CANCELLED: "mitigation_cancelled",
    MitigationProgressStatus.DONE: "mitigation_completed",
}


class RiskWorkflowService:
    def __init__(
        self,
        db: Session,
        audit: Optional[AuditRecorder] = None,
        notifier: Optional[NotificationDispatcher] = None
    ):
        self.db = db
        self.audit = audit or AuditRecorder(db)
        self.notifier = notifier or NotificationDispatcher(db)

    # ==================== INTAKE ====================

    def submit_intake(self, organization_id: str, data: RiskIntakeCreate, reporter_id: str) -> Risk:
        """Create a risk in risk_identified with the next per-organization code."""
        with self._transaction():
            sequence = self._next_risk_sequence(organization_id)
            risk = Risk(
                organization_id=organization_id,
                risk_code=format_risk_code(sequence, settings.RISK_CODE_PREFIX, settings.RISK_CODE_WIDTH),
                title=data.title,
                description=data.description,
                source=data.source.value,
                category=data.category.value,
                initial_severity=data.initial_severity.value,
                documentation=data.documentation,
                tags=list(data.tags),
                status=RiskStatus.RISK_IDENTIFIED.value,
                reporter_id=reporter_id,
                grc_sme_id=data.suggested_sme_id,
                created_by=reporter_id
            )
            self.db.add(risk)
            self.db.flush()

            changes = create_history_changes(
                {}, {"status": risk.status, "risk_code": risk.risk_code}
            )
            self._append_history(risk, "risk_submitted", reporter_id, changes)

        logger.info("Risk %s submitted in organization %s", risk.risk_code, organization_id)
        self._audit(
            risk, reporter_id, "risk_intake_submitted",
            f"Risk {risk.risk_code} submitted for GRC review", changes
        )
        if risk.grc_sme_id:
            self._notify(
                risk, risk.grc_sme_id, NotificationType.TASK_ASSIGNED,
                "New risk submitted for review",
                f"{risk.risk_code} '{risk.title}' is awaiting validation.",
                NotificationSeverity.INFO
            )
        return risk

    def validate_risk(
        self,
        risk_id: int,
        organization_id: str,
        decision: ReviewDecision,
        grc_sme_id: str,
        actor_id: str,
        notes: Optional[str] = None
    ) -> Risk:
        """GRC SME confirms (actual_risk) or rejects (not_a_risk) a reported risk."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            old_status = risk.status
            new_status, action = decide_validation(old_status, decision)

            self._compare_and_swap(
                Risk, Risk.risk_id, risk.risk_id, old_status,
                {"status": new_status.value, "grc_sme_id": grc_sme_id}
            )
            changes = create_history_changes(
                {"status": old_status}, {"status": new_status}, {"grc_sme_id": grc_sme_id}
            )
            self._append_history(risk, action, actor_id, changes, notes)

        self._audit(risk, actor_id, action, f"Risk {risk.risk_code} {action.replace('_', ' ')}", changes)
        if new_status == RiskStatus.ACTUAL_RISK:
            self._notify(
                risk, risk.reporter_id, NotificationType.RISK_STATUS_CHANGED,
                "Risk validated",
                f"{risk.risk_code} was confirmed as a risk and will be assessed.",
                NotificationSeverity.SUCCESS
            )
        else:
            message = f"{risk.risk_code} was reviewed and is not considered a risk."
            if notes:
                message = f"{message} Notes: {notes}"
            self._notify(
                risk, risk.reporter_id, NotificationType.RISK_STATUS_CHANGED,
                "Risk declined", message, NotificationSeverity.WARNING
            )
        return risk

    # ==================== ASSESSMENT ====================

    def assign_risk_assessor(
        self,
        risk_id: int,
        organization_id: str,
        risk_assessor_id: str,
        actor_id: str,
        notes: Optional[str] = None
    ) -> Tuple[Risk, RiskAssessment]:
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            require_risk_status(risk.status, RiskStatus.ACTUAL_RISK)

            self._compare_and_swap(
                Risk, Risk.risk_id, risk.risk_id, risk.status,
                {
                    "status": RiskStatus.RISK_ANALYSIS_IN_PROGRESS.value,
                    "risk_assessor_id": risk_assessor_id,
                }
            )
            assessment = RiskAssessment(
                risk_id=risk.risk_id,
                status=AssessmentStatus.RISK_ASSESSOR_ANALYSIS.value,
                risk_assessor_id=risk_assessor_id,
                grc_sme_id=risk.grc_sme_id
            )
            self.db.add(assessment)
            changes = create_history_changes(
                {"status": RiskStatus.ACTUAL_RISK},
                {"status": RiskStatus.RISK_ANALYSIS_IN_PROGRESS},
                {"risk_assessor_id": risk_assessor_id}
            )
            self._append_history(risk, "risk_assessor_assigned", actor_id, changes, notes)

        self._audit(
            risk, actor_id, "risk_assessor_assigned",
            f"Assessor {risk_assessor_id} assigned to {risk.risk_code}", changes
        )
        self._notify(
            risk, risk_assessor_id, NotificationType.TASK_ASSIGNED,
            "Risk assessment assigned",
            f"You have been assigned to assess {risk.risk_code} '{risk.title}'.",
            NotificationSeverity.WARNING
        )
        return risk, assessment

    def submit_assessment(
        self,
        risk_id: int,
        organization_id: str,
        data: AssessmentSubmitRequest,
        actor_id: str
    ) -> RiskAssessment:
        """Assessor hands the analysis to the GRC SME for approval."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            assessment = risk.assessment
            require_assessment_status(
                assessment.status if assessment else None, AssessmentStatus.RISK_ASSESSOR_ANALYSIS
            )
            level = score_assessment(data.likelihood, data.impact)

            values = self._assessment_values(data, level)
            values.update(
                status=AssessmentStatus.GRC_APPROVAL.value,
                assessor_submitted_at=utc_now()
            )
            old_scores = self._risk_scores(risk)
            self._compare_and_swap(
                RiskAssessment, RiskAssessment.assessment_id, assessment.assessment_id,
                assessment.status, values
            )
            self._apply_inherent_scores(risk, data, level)
            self._replace_links(risk, data.affected_assets, data.existing_controls)

            changes = create_history_changes(
                dict(old_scores, assessment_status=AssessmentStatus.RISK_ASSESSOR_ANALYSIS),
                dict(self._risk_scores(risk), assessment_status=AssessmentStatus.GRC_APPROVAL)
            )
            self._append_history(risk, "assessment_submitted", actor_id, changes)

        self._audit(
            risk, actor_id, "assessment_submitted",
            f"Assessment for {risk.risk_code} submitted ({level.value})", changes
        )
        self._notify(
            risk, risk.grc_sme_id, NotificationType.TASK_ASSIGNED,
            "Assessment ready for review",
            f"The assessment for {risk.risk_code} is awaiting your approval.",
            NotificationSeverity.INFO
        )
        return assessment

    def review_assessment(
        self,
        risk_id: int,
        organization_id: str,
        decision: ReviewDecision,
        actor_id: str,
        notes: Optional[str] = None
    ) -> Tuple[RiskAssessment, Optional[RiskTreatment]]:
        """
        GRC SME approves or declines a submitted assessment.

        Approval completes the assessment and opens the treatment. Decline moves
        the assessment into grc_revision; the risk status does not change.
        """
        treatment = None
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            assessment = risk.assessment
            outcome = decide_assessment_review(assessment.status if assessment else None, decision)
            old_risk_status = risk.status

            now = utc_now()
            values = {
                "status": outcome.assessment_status.value,
                "grc_review_notes": notes,
            }
            if outcome.creates_treatment:
                values.update(grc_approved_at=now, completed_at=now)
            else:
                values["grc_declined_reason"] = notes

            self._compare_and_swap(
                RiskAssessment, RiskAssessment.assessment_id, assessment.assessment_id,
                assessment.status, values
            )
            extra = {}
            if outcome.creates_treatment:
                treatment = self._complete_assessment(risk, assessment)
                extra["risk_owner_id"] = risk.risk_owner_id
            changes = create_history_changes(
                {"assessment_status": AssessmentStatus.GRC_APPROVAL, "status": old_risk_status},
                {"assessment_status": outcome.assessment_status, "status": risk.status},
                extra
            )
            self._append_history(risk, outcome.history_action, actor_id, changes, notes)

        self._audit(
            risk, actor_id, outcome.history_action,
            f"Assessment for {risk.risk_code} {outcome.history_action.replace('_', ' ')}", changes
        )
        if treatment is not None:
            self._notify_treatment_owner(risk)
        return assessment, treatment

    def submit_grc_revision(
        self,
        risk_id: int,
        organization_id: str,
        data: AssessmentSubmitRequest,
        actor_id: str
    ) -> Tuple[RiskAssessment, RiskTreatment]:
        """GRC SME's revised assessment. Completes the assessment directly."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            assessment = risk.assessment
            require_assessment_status(
                assessment.status if assessment else None, AssessmentStatus.GRC_REVISION
            )
            level = score_assessment(data.likelihood, data.impact)

            now = utc_now()
            values = self._assessment_values(data, level)
            values.update(
                status=AssessmentStatus.DONE.value,
                grc_sme_id=actor_id,
                grc_approved_at=now,
                completed_at=now
            )
            old_scores = self._risk_scores(risk)
            self._compare_and_swap(
                RiskAssessment, RiskAssessment.assessment_id, assessment.assessment_id,
                assessment.status, values
            )
            self._apply_inherent_scores(risk, data, level)
            self._replace_links(risk, data.affected_assets, data.existing_controls)
            treatment = self._complete_assessment(risk, assessment)

            changes = create_history_changes(
                dict(old_scores, assessment_status=AssessmentStatus.GRC_REVISION,
                     status=RiskStatus.RISK_ANALYSIS_IN_PROGRESS),
                dict(self._risk_scores(risk), assessment_status=AssessmentStatus.DONE,
                     status=risk.status),
                {"risk_owner_id": risk.risk_owner_id}
            )
            self._append_history(risk, "assessment_revised", actor_id, changes)

        self._audit(
            risk, actor_id, "assessment_revised",
            f"GRC revision of the {risk.risk_code} assessment completed ({level.value})", changes
        )
        self._notify_treatment_owner(risk)
        return assessment, treatment

    # ==================== TREATMENT ====================

    def submit_treatment_decision(
        self,
        risk_id: int,
        organization_id: str,
        data: TreatmentDecisionRequest,
        actor_id: str
    ) -> RiskTreatment:
        """Route the owner's decision through the treatment matrix."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            treatment = risk.treatment
            old_status = treatment.status if treatment else None
            outcome = decide_treatment(old_status, data.treatment_decision, risk.inherent_risk)
            next_status = outcome.next_status

            values = {
                "status": next_status.value,
                "treatment_decision": data.treatment_decision.value,
                "treatment_justification": data.justification,
                "executive_approval_required": outcome.executive_approval_required,
                "executive_approver_id": None,
                "executive_approval_status": None,
                "mitigation_description": data.mitigation_description,
                "mitigation_target_date": to_naive_utc(data.mitigation_target_date),
                "transfer_to": data.transfer_to,
                "transfer_cost": data.transfer_cost,
                "avoid_strategy": data.avoid_strategy,
                "acceptance_rationale": data.acceptance_rationale,
                "acceptance_expires_at": to_naive_utc(data.acceptance_expires_at),
            }
            if next_status == TreatmentStatus.RISK_MITIGATION_IN_PROGRESS:
                values["mitigation_status"] = MitigationProgressStatus.ON_TRACK.value
            if next_status in TERMINAL_TREATMENT_STATUSES:
                values["completed_at"] = utc_now()

            self._compare_and_swap(
                RiskTreatment, RiskTreatment.treatment_id, treatment.treatment_id, old_status, values
            )
            self._sync_treatment_summary(risk, next_status, data.treatment_decision.value)
            risk.treatment_notes = data.justification

            changes = create_history_changes(
                {"treatment_status": old_status},
                {"treatment_status": next_status},
                {
                    "treatment_decision": data.treatment_decision,
                    "risk_level": risk.inherent_risk,
                    "executive_approval_required": outcome.executive_approval_required,
                }
            )
            self._append_history(risk, "treatment_decision_submitted", actor_id, changes, data.justification)

        logger.info(
            "Treatment decision %s on %s routed to %s",
            data.treatment_decision.value, risk.risk_code, next_status.value
        )
        self._audit(
            risk, actor_id, "treatment_decision_submitted",
            f"Treatment '{data.treatment_decision.value}' chosen for {risk.risk_code}", changes
        )
        if outcome.executive_approval_required:
            self._notify(
                risk, risk.grc_sme_id or treatment.grc_sme_id, NotificationType.TASK_ASSIGNED,
                "Executive approval required",
                f"The '{data.treatment_decision.value}' decision on {risk.risk_code} "
                f"({risk.inherent_risk}) needs an executive approver.",
                NotificationSeverity.ERROR
            )
        return treatment

    def set_executive_approver(
        self,
        risk_id: int,
        organization_id: str,
        executive_approver_id: str,
        actor_id: str
    ) -> RiskTreatment:
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            treatment = risk.treatment
            old_status = treatment.status if treatment else None
            next_status = decide_executive_approver(old_status)

            self._compare_and_swap(
                RiskTreatment, RiskTreatment.treatment_id, treatment.treatment_id, old_status,
                {
                    "status": next_status.value,
                    "executive_approver_id": executive_approver_id,
                    "executive_approval_status": ExecutiveApprovalStatus.PENDING.value,
                }
            )
            changes = create_history_changes(
                {"treatment_status": old_status},
                {"treatment_status": next_status},
                {"executive_approver_id": executive_approver_id}
            )
            self._append_history(risk, "executive_approver_assigned", actor_id, changes)

        self._audit(
            risk, actor_id, "executive_approver_assigned",
            f"Executive approver {executive_approver_id} set for {risk.risk_code}", changes
        )
        self._notify(
            risk, executive_approver_id, NotificationType.TASK_ASSIGNED,
            "Executive approval requested",
            f"Please review the '{treatment.treatment_decision}' decision on {risk.risk_code}.",
            NotificationSeverity.WARNING
        )
        return treatment

    def submit_executive_decision(
        self,
        risk_id: int,
        organization_id: str,
        decision: ExecutiveDecision,
        actor_id: str,
        notes: Optional[str] = None
    ) -> RiskTreatment:
        """Executive approves the escalated decision or sends it back to the owner."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            treatment = risk.treatment
            old_status = treatment.status if treatment else None
            treatment_decision = treatment.treatment_decision if treatment else None
            outcome = decide_executive(old_status, decision, treatment_decision)
            next_status = outcome.next_status

            values = {
                "status": next_status.value,
                "executive_approval_status": outcome.approval_status.value,
                "executive_approval_notes": notes,
            }
            if outcome.clears_decision:
                values.update(
                    treatment_decision=None,
                    executive_approval_required=False,
                    executive_denied_reason=notes
                )
            else:
                values["executive_approved_at"] = utc_now()
                if next_status == TreatmentStatus.RISK_MITIGATION_IN_PROGRESS:
                    values["mitigation_status"] = MitigationProgressStatus.ON_TRACK.value
                if next_status in TERMINAL_TREATMENT_STATUSES:
                    values["completed_at"] = utc_now()

            self._compare_and_swap(
                RiskTreatment, RiskTreatment.treatment_id, treatment.treatment_id, old_status, values
            )
            self._sync_treatment_summary(
                risk, next_status, None if outcome.clears_decision else treatment_decision
            )
            changes = create_history_changes(
                {"treatment_status": old_status},
                {"treatment_status": next_status},
                {"executive_decision": decision, "treatment_decision": treatment_decision}
            )
            self._append_history(risk, outcome.history_action, actor_id, changes, notes)

        self._audit(
            risk, actor_id, outcome.history_action,
            f"Executive {outcome.approval_status.value} '{treatment_decision}' on {risk.risk_code}", changes
        )
        if outcome.clears_decision:
            message = f"The '{treatment_decision}' decision on {risk.risk_code} was denied. Choose a new treatment."
            if notes:
                message = f"{message} Reason: {notes}"
            self._notify(
                risk, treatment.risk_owner_id, NotificationType.RISK_STATUS_CHANGED,
                "Executive approval denied", message, NotificationSeverity.WARNING
            )
        else:
            self._notify(
                risk, treatment.risk_owner_id, NotificationType.RISK_STATUS_CHANGED,
                "Executive approval granted",
                f"The '{treatment_decision}' decision on {risk.risk_code} was approved.",
                NotificationSeverity.SUCCESS
            )
        return treatment

    # ==================== MITIGATION ====================

    def submit_mitigation_update(
        self,
        risk_id: int,
        organization_id: str,
        data: MitigationUpdateRequest,
        actor_id: str
    ) -> RiskTreatment:
        """Record mitigation progress, a delay, a cancellation or completion."""
        with self._transaction():
            risk = self._get_risk(risk_id, organization_id)
            treatment = risk.treatment
            old_status = treatment.status if treatment else None
            outcome = decide_mitigation_update(old_status, data.status)
            next_status = outcome.next_status

            residual_likelihood, residual_impact, residual_level = merge_residual(
                treatment.residual_likelihood,
                treatment.residual_impact,
                data.residual_likelihood.value if data.residual_likelihood else None,
                data.residual_impact.value if data.residual_impact else None
            )
            now = utc_now()
            previous_mitigation_status = treatment.mitigation_status
            values = {
                "status": next_status.value,
                "mitigation_status": data.status.value,
                "last_progress_update": now,
                "residual_likelihood": residual_likelihood,
                "residual_impact": residual_impact,
                "residual_risk_level": residual_level.value if residual_level else None,
            }
            if data.progress is not None:
                values["mitigation_progress"] = data.progress
            if data.status == MitigationProgressStatus.DELAYED and data.new_target_date:
                values["mitigation_target_date"] = to_naive_utc(data.new_target_date)
            if outcome.clears_decision:
                residual_level = None
                values.update(
                    treatment_decision=None,
                    executive_approval_required=False,
                    residual_likelihood=None,
                    residual_impact=None,
                    residual_risk_level=None,
                    mitigation_progress=0,
                )
            if outcome.completes:
                values.update(mitigation_progress=100, mitigation_actual_date=now, completed_at=now)

            self._compare_and_swap(
                RiskTreatment, RiskTreatment.treatment_id, treatment.treatment_id, old_status, values
            )
            self.db.add(RiskTreatmentUpdate(
                treatment_id=treatment.treatment_id,
                update_type=outcome.update_type,
                previous_status=previous_mitigation_status,
                new_status=data.status.value,
                progress=100 if outcome.completes else data.progress,
                notes=data.notes,
                new_target_date=to_naive_utc(data.new_target_date),
                delay_reason=data.delay_reason,
                cancellation_reason=data.cancellation_reason,
                completion_evidence=data.completion_evidence,
                effectiveness_notes=data.effectiveness_notes,
                created_by=actor_id
            ))

            self._sync_treatment_summary(
                risk, next_status,
                None if outcome.clears_decision else treatment.treatment_decision
            )
            if outcome.completes and residual_level is not None:
                risk.residual_risk = residual_level.value

            action = MITIGATION_HISTORY_ACTIONS[MitigationProgressStatus(data.status)]
            changes = create_history_changes(
                {"treatment_status": old_status, "mitigation_status": previous_mitigation_status},
                {"treatment_status": next_status, "mitigation_status": data.status},
                {"update_type": outcome.update_type, "residual_risk_level": residual_level}
            )
            self._append_history(risk, action, actor_id, changes, data.notes)

        self._audit(
            risk, actor_id, action,
            f"Mitigation {outcome.update_type} recorded for {risk.risk_code}", changes
        )
        if data.status == MitigationProgressStatus.DONE:
            self._notify(
                risk, risk.grc_sme_id, NotificationType.RISK_STATUS_CHANGED,
                "Mitigation complete",
                f"Mitigation of {risk.risk_code} is complete"
                + (f"; residual risk is {residual_level.value}." if residual_level else "."),
                NotificationSeverity.SUCCESS
            )
        elif data.status == MitigationProgressStatus.CANCELLED:
            self._notify(
                risk, risk.grc_sme_id, NotificationType.RISK_STATUS_CHANGED,
                "Mitigation cancelled",
                f"Mitigation of {risk.risk_code} was cancelled and needs a new treatment decision.",
                NotificationSeverity.WARNING
            )
        return treatment

    # ==================== READ SIDE ====================

    def get_workflow_state(self, risk_id: int, organization_id: str) -> dict:
        risk = self._get_risk(risk_id, organization_id)
        assessment = risk.assessment
        treatment = risk.treatment
        assessment_status = assessment.status if assessment else None
        treatment_status = treatment.status if treatment else None

        history = (
            self.db.query(RiskHistory)
            .filter(RiskHistory.risk_id == risk.risk_id)
            .order_by(RiskHistory.history_id.desc())
            .limit(STATE_HISTORY_LIMIT)
            .all()
        )

        treatment_state = None
        if treatment is not None:
            treatment_state = {
                **{column: getattr(treatment, column) for column in _column_names(RiskTreatment)},
                "updates": treatment.updates[:STATE_UPDATE_LIMIT],
            }

        return {
            "risk": risk,
            "roles": {
                "reporter_id": risk.reporter_id,
                "grc_sme_id": risk.grc_sme_id,
                "risk_assessor_id": risk.risk_assessor_id,
                "risk_owner_id": risk.risk_owner_id,
            },
            "assessment": assessment,
            "treatment": treatment_state,
            "history": history,
            "current_stage": determine_current_stage(risk.status, assessment_status, treatment_status),
            "available_actions": get_available_actions(risk.status, assessment_status, treatment_status),
        }

    def list_history(self, risk_id: int, organization_id: str) -> List[RiskHistory]:
        """Full workflow trail, oldest first."""
        risk = self._get_risk(risk_id, organization_id)
        return (
            self.db.query(RiskHistory)
            .filter(RiskHistory.risk_id == risk.risk_id)
            .order_by(RiskHistory.history_id.asc())
            .all()
        )

    # ==================== INTERNALS ====================

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _get_risk(self, risk_id: int, organization_id: str) -> Risk:
        risk = self.db.query(Risk).filter(
            Risk.risk_id == risk_id,
            Risk.organization_id == organization_id
        ).first()
        if not risk:
            raise RiskNotFoundError("Risk not found")
        return risk

    def _next_risk_sequence(self, organization_id: str) -> int:
        """Increment-then-read the organization's counter inside the open transaction."""
        result = self.db.execute(
            update(RiskIdSequence)
            .where(RiskIdSequence.organization_id == organization_id)
            .values(last_value=RiskIdSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.add(RiskIdSequence(organization_id=organization_id, last_value=1))
            self.db.flush()
            return 1
        return self.db.execute(
            select(RiskIdSequence.last_value)
            .where(RiskIdSequence.organization_id == organization_id)
        ).scalar_one()

    def _compare_and_swap(self, model, key_column, key_value, expected_status: str, values: dict) -> None:
        """UPDATE ... WHERE key = :key AND status = :expected; zero rows means we lost a race."""
        result = self.db.execute(
            update(model)
            .where(key_column == key_value, model.status == expected_status)
            .values(**values)
        )
        if result.rowcount != 1:
            logger.warning(
                "Lost status update on %s %s (expected %s)",
                model.__tablename__, key_value, expected_status
            )
            raise InvalidStateError(
                f"{model.__name__} {key_value} is no longer in {expected_status} status"
            )

    def _append_history(
        self,
        risk: Risk,
        action: str,
        changed_by: str,
        changes: Optional[dict] = None,
        notes: Optional[str] = None
    ) -> RiskHistory:
        entry = RiskHistory(
            risk_id=risk.risk_id,
            action=action,
            changes=changes or None,
            notes=notes,
            changed_by=changed_by
        )
        self.db.add(entry)
        return entry

    @staticmethod
    def _assessment_values(data: AssessmentSubmitRequest, level) -> dict:
        return {
            "threat_description": data.threat_description,
            "vulnerabilities": data.vulnerabilities,
            "likelihood": data.likelihood.value,
            "likelihood_rationale": data.likelihood_rationale,
            "impact": data.impact.value,
            "impact_rationale": data.impact_rationale,
            "impact_categories": data.impact_categories,
            "calculated_risk_level": level.value,
            "recommended_owner_id": data.recommended_owner_id,
            "assessment_notes": data.assessment_notes,
            "treatment_recommendation": data.treatment_recommendation,
        }

    @staticmethod
    def _risk_scores(risk: Risk) -> dict:
        return {
            "likelihood": risk.likelihood,
            "impact": risk.impact,
            "inherent_risk": risk.inherent_risk,
        }

    @staticmethod
    def _apply_inherent_scores(risk: Risk, data: AssessmentSubmitRequest, level) -> None:
        risk.likelihood = data.likelihood.value
        risk.impact = data.impact.value
        risk.inherent_risk = level.value

    def _replace_links(
        self,
        risk: Risk,
        asset_ids: Optional[List[str]],
        control_ids: Optional[List[str]]
    ) -> None:
        """Delete-then-insert asset and control links. None leaves a list untouched."""
        if asset_ids is None and control_ids is None:
            return

        if asset_ids is not None:
            risk.assets.clear()
        if control_ids is not None:
            risk.controls.clear()
        self.db.flush()

        if asset_ids is not None:
            for asset_id in dict.fromkeys(asset_ids):
                risk.assets.append(RiskAsset(asset_id=asset_id))
        if control_ids is not None:
            for control_id in dict.fromkeys(control_ids):
                risk.controls.append(RiskControl(
                    control_id=control_id, effectiveness=ControlEffectiveness.PARTIAL.value
                ))

    def _complete_assessment(self, risk: Risk, assessment: RiskAssessment) -> RiskTreatment:
        """Move the risk to risk_analyzed and open its treatment."""
        owner_id = assessment.recommended_owner_id
        self._compare_and_swap(
            Risk, Risk.risk_id, risk.risk_id, RiskStatus.RISK_ANALYSIS_IN_PROGRESS.value,
            {"status": RiskStatus.RISK_ANALYZED.value, "risk_owner_id": owner_id}
        )
        if risk.treatment is not None:
            raise InvalidStateError("Treatment already exists for this risk")

        treatment = RiskTreatment(
            risk_id=risk.risk_id,
            status=TreatmentStatus.TREATMENT_DECISION_REVIEW.value,
            risk_owner_id=owner_id,
            grc_sme_id=risk.grc_sme_id,
            executive_approval_required=False,
            mitigation_progress=0
        )
        self.db.add(treatment)
        self._sync_treatment_summary(risk, TreatmentStatus.TREATMENT_DECISION_REVIEW, None)
        self.db.flush()
        return treatment

    @staticmethod
    def _sync_treatment_summary(risk: Risk, status: TreatmentStatus, decision: Optional[str]) -> None:
        risk.treatment_plan = decision
        risk.treatment_status = TREATMENT_SUMMARY_STATUS[TreatmentStatus(status)]

    def _notify_treatment_owner(self, risk: Risk) -> None:
        self._notify(
            risk, risk.risk_owner_id, NotificationType.TASK_ASSIGNED,
            "Treatment decision required",
            f"{risk.risk_code} has been assessed as {risk.inherent_risk}. "
            "Choose to mitigate, accept, transfer or avoid it.",
            NotificationSeverity.INFO
        )

    def _audit(self, risk: Risk, user_id: str, action: str, description: str, changes: Optional[dict]) -> None:
        try:
            self.audit.log(
                organization_id=risk.organization_id,
                user_id=user_id,
                action=action,
                entity_type=RISK_ENTITY,
                entity_id=risk.risk_id,
                entity_name=risk.risk_code,
                description=description,
                changes=changes
            )
        except Exception:
            logger.exception("Audit logging failed for %s on risk %s", action, risk.risk_id)

    def _notify(
        self,
        risk: Risk,
        user_id: Optional[str],
        notification_type: NotificationType,
        title: str,
        message: str,
        severity: NotificationSeverity
    ) -> None:
        try:
            self.notifier.create(
                organization_id=risk.organization_id,
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                entity_type=RISK_ENTITY,
                entity_id=risk.risk_id,
                severity=severity
            )
        except Exception:
            logger.exception("Notification '%s' failed for risk %s", title, risk.risk_id)


def _column_names(model) -> List[str]:
    return [column.key for column in model.__table__.columns]
