"""One-way migration of legacy case stages to the current stage set.

Each migrated lead moves through record_transition, so it gets exactly one
appended history row. Existing history rows are left as written.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.stage_definitions import LEGACY_STAGE_MAP
from app.db.enums import CaseStage, LEGACY_STAGES
from app.db.models import HospitalSuggestion, KYPSubmission, Lead, PreAuthorization
from app.services import case_stage_service

logger = logging.getLogger(__name__)

BACKFILL_NOTE = "Legacy stage backfill"


@dataclass
class BackfillReport:
    leads_migrated: int = 0
    suggestions_created: int = 0
    dry_run: bool = False
    moves: list[tuple[str, str, str]] = field(default_factory=list)  # (lead_ref, from, to)


def target_stage(lead: Lead) -> CaseStage | None:
    """Current stage a legacy lead maps to, or None when it is not legacy."""
    if lead.case_stage not in LEGACY_STAGES:
        return None
    target = LEGACY_STAGE_MAP[CaseStage(lead.case_stage)]
    if lead.case_stage == CaseStage.KYP_PENDING:
        kyp = lead.kyp_submission
        if kyp is not None and kyp.pre_auth is not None and kyp.pre_auth.pre_auth_raised_at is None:
            target = CaseStage.KYP_DETAILED_PENDING
    return target


def _legacy_suggestion_names(pre_auth: PreAuthorization) -> list[str]:
    names = []
    for item in pre_auth.hospital_suggestions or []:
        if isinstance(item, dict):
            item = item.get("name") or ""
        name = str(item).strip()
        if name:
            names.append(name)
    return names


def backfill_stages(db: Session, dry_run: bool = False) -> BackfillReport:
    """
    Move every lead off a legacy stage and convert legacy hospital name lists
    into suggestion rows.

    With dry_run the counts are computed and everything is rolled back.
    """
    report = BackfillReport(dry_run=dry_run)

    leads = (
        db.execute(
            select(Lead)
            .where(Lead.case_stage.in_([s.value for s in LEGACY_STAGES]))
            .options(selectinload(Lead.kyp_submission).selectinload(KYPSubmission.pre_auth))
            .order_by(Lead.created_at)
        )
        .scalars()
        .all()
    )
    for lead in leads:
        target = target_stage(lead)
        if target is None:
            continue
        from_stage = lead.case_stage
        case_stage_service.record_transition(db, lead, target, None, note=BACKFILL_NOTE)
        report.leads_migrated += 1
        report.moves.append((lead.lead_ref, from_stage, target.value))
        logger.info(f"stage_backfill lead_ref={lead.lead_ref} {from_stage} -> {target.value}")

    pre_auths = (
        db.execute(
            select(PreAuthorization)
            .where(PreAuthorization.hospital_suggestions.is_not(None))
            .options(selectinload(PreAuthorization.suggested_hospitals))
        )
        .scalars()
        .all()
    )
    for pre_auth in pre_auths:
        if pre_auth.suggested_hospitals:
            continue
        for name in _legacy_suggestion_names(pre_auth):
            pre_auth.suggested_hospitals.append(HospitalSuggestion(hospital_name=name))
            report.suggestions_created += 1

    if dry_run:
        db.rollback()
    else:
        db.commit()

    logger.info(
        f"stage_backfill_done leads={report.leads_migrated} "
        f"suggestions={report.suggestions_created} dry_run={dry_run}"
    )
    return report
