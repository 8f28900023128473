"""Legacy stage backfill (service and CLI)."""

from click.testing import CliRunner

from app.cli import cli
from app.db.enums import CaseStage
from app.db.models import CaseStageHistory, HospitalSuggestion, Lead, PreAuthorization
from app.services import stage_backfill_service


def _force_stage(db, lead, stage: CaseStage) -> Lead:
    """Put a lead on a stage directly, the way pre-migration rows were written."""
    lead.case_stage = stage.value
    db.commit()
    db.refresh(lead)
    return lead


def _history(db, lead):
    return db.query(CaseStageHistory).filter(CaseStageHistory.lead_id == lead.id).all()


def test_backfill_moves_legacy_stages(db, cases):
    admitted = _force_stage(db, cases.lead("Admitted Patient"), CaseStage.ADMITTED)
    ipd_done = _force_stage(db, cases.lead("Discharged Patient"), CaseStage.IPD_DONE)
    kyp_complete = _force_stage(db, cases.lead("Reviewed Patient"), CaseStage.KYP_COMPLETE)
    current = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    current_history = len(_history(db, current))

    report = stage_backfill_service.backfill_stages(db)

    assert report.leads_migrated == 3
    assert not report.dry_run
    db.expire_all()
    assert db.get(Lead, admitted.id).case_stage == "INITIATED"
    assert db.get(Lead, ipd_done.id).case_stage == "DISCHARGED"
    assert db.get(Lead, kyp_complete.id).case_stage == "KYP_DETAILED_COMPLETE"
    assert db.get(Lead, current.id).case_stage == "KYP_BASIC_PENDING"

    rows = _history(db, admitted)
    assert len(rows) == 1
    assert (rows[0].from_stage, rows[0].to_stage) == ("ADMITTED", "INITIATED")
    assert rows[0].changed_by_id is None
    assert rows[0].note == stage_backfill_service.BACKFILL_NOTE
    assert len(_history(db, current)) == current_history

    # Second run has nothing left to do
    again = stage_backfill_service.backfill_stages(db)
    assert again.leads_migrated == 0


def test_kyp_pending_with_insurance_details_maps_to_detailed_pending(db, cases):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    db.add(PreAuthorization(kyp_submission_id=lead.kyp_submission.id, sum_insured="300000"))
    _force_stage(db, lead, CaseStage.KYP_PENDING)

    plain = _force_stage(db, cases.at_stage(CaseStage.KYP_BASIC_PENDING), CaseStage.KYP_PENDING)

    stage_backfill_service.backfill_stages(db)
    db.expire_all()
    assert db.get(Lead, lead.id).case_stage == "KYP_DETAILED_PENDING"
    assert db.get(Lead, plain.id).case_stage == "KYP_BASIC_PENDING"


def test_backfill_converts_legacy_suggestion_names(db, cases):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    pre_auth = PreAuthorization(
        kyp_submission_id=lead.kyp_submission.id,
        hospital_suggestions=["Apollo Hospital", {"name": "Ruby Hall Clinic"}, "  "],
    )
    db.add(pre_auth)
    _force_stage(db, lead, CaseStage.KYP_COMPLETE)

    # Already has rows: left alone
    suggested = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    rows_before = db.query(HospitalSuggestion).count()

    report = stage_backfill_service.backfill_stages(db)
    assert report.suggestions_created == 2

    names = sorted(
        h.hospital_name
        for h in db.query(HospitalSuggestion).filter(HospitalSuggestion.pre_auth_id == pre_auth.id)
    )
    assert names == ["Apollo Hospital", "Ruby Hall Clinic"]
    assert db.query(HospitalSuggestion).count() == rows_before + 2
    assert suggested.kyp_submission.pre_auth.suggested_hospitals


def test_backfill_dry_run_changes_nothing(db, cases):
    lead = _force_stage(db, cases.lead(), CaseStage.ADMITTED)

    report = stage_backfill_service.backfill_stages(db, dry_run=True)

    assert report.dry_run
    assert report.leads_migrated == 1
    assert report.moves == [(lead.lead_ref, "ADMITTED", "INITIATED")]
    db.expire_all()
    assert db.get(Lead, lead.id).case_stage == "ADMITTED"
    assert _history(db, lead) == []


def test_backfill_cli(db, cases):
    lead = _force_stage(db, cases.lead(), CaseStage.IPD_DONE)
    runner = CliRunner()

    result = runner.invoke(cli, ["backfill-stages", "--dry-run"])
    assert result.exit_code == 0
    assert "DRY RUN" in result.output
    assert "Would migrate 1 lead(s)" in result.output

    result = runner.invoke(cli, ["backfill-stages"])
    assert result.exit_code == 0
    assert f"{lead.lead_ref}: IPD_DONE → DISCHARGED" in result.output
    db.expire_all()
    assert db.get(Lead, lead.id).case_stage == "DISCHARGED"
