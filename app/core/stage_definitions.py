"""Display metadata for case stages and the one-way legacy stage map."""

from app.db.enums import CaseStage


STAGE_LABELS: dict[CaseStage, str] = {
    CaseStage.NEW_LEAD: "New Lead",
    CaseStage.KYP_BASIC_PENDING: "KYP (Basic) Pending",
    CaseStage.KYP_BASIC_COMPLETE: "KYP (Basic) Complete",
    CaseStage.HOSPITALS_SUGGESTED: "Hospitals Suggested",
    CaseStage.KYP_DETAILED_PENDING: "KYP (Detailed) Pending",
    CaseStage.KYP_DETAILED_COMPLETE: "KYP (Detailed) Complete",
    CaseStage.PREAUTH_RAISED: "Pre-Auth Raised",
    CaseStage.PREAUTH_COMPLETE: "Pre-Auth Complete",
    CaseStage.INITIATED: "Admission Initiated",
    CaseStage.DISCHARGED: "Discharged",
    CaseStage.PL_PENDING: "P&L Pending",
    CaseStage.OUTSTANDING: "Outstanding",
    CaseStage.KYP_PENDING: "KYP Pending (legacy)",
    CaseStage.KYP_COMPLETE: "KYP Complete (legacy)",
    CaseStage.ADMITTED: "Admitted (legacy)",
    CaseStage.IPD_DONE: "IPD Done (legacy)",
}

# Forward order for display. Legacy stages are omitted.
DEFAULT_STAGE_ORDER: list[CaseStage] = [
    CaseStage.NEW_LEAD,
    CaseStage.KYP_BASIC_PENDING,
    CaseStage.KYP_BASIC_COMPLETE,
    CaseStage.HOSPITALS_SUGGESTED,
    CaseStage.KYP_DETAILED_PENDING,
    CaseStage.KYP_DETAILED_COMPLETE,
    CaseStage.PREAUTH_RAISED,
    CaseStage.PREAUTH_COMPLETE,
    CaseStage.INITIATED,
    CaseStage.DISCHARGED,
    CaseStage.PL_PENDING,
    CaseStage.OUTSTANDING,
]

# KYP_PENDING is special-cased by the backfill (see stage_backfill_service).
LEGACY_STAGE_MAP: dict[CaseStage, CaseStage] = {
    CaseStage.KYP_PENDING: CaseStage.KYP_BASIC_PENDING,
    CaseStage.KYP_COMPLETE: CaseStage.KYP_DETAILED_COMPLETE,
    CaseStage.ADMITTED: CaseStage.INITIATED,
    CaseStage.IPD_DONE: CaseStage.DISCHARGED,
}


def get_stage_label(stage: str) -> str:
    if CaseStage.has_value(stage):
        return STAGE_LABELS[CaseStage(stage)]
    return stage
