"""KYP endpoints: basic/detailed submission, hospital suggestions, edits, follow-up."""

import uuid

import pytest

from app.db.enums import CaseStage
from app.db.models import (
    CaseChatMessage,
    CaseStageHistory,
    HospitalSuggestion,
    KYPSubmission,
    Lead,
    Notification,
)


def _basic_payload(lead, **overrides):
    payload = {
        "leadId": str(lead.id),
        "type": "basic",
        "insuranceCard": "CARD-001",
        "location": "Pune",
        "area": "Kothrud",
        "aadhar": "1234-5678-9012",
    }
    payload.update(overrides)
    return payload


def _suggest_payload(lead, **overrides):
    payload = {
        "leadId": str(lead.id),
        "sumInsured": "500000",
        "copay": "10%",
        "hospitals": [
            {"hospitalName": "Apollo Hospital", "tentativeBill": "180000"},
            {"hospitalName": "Ruby Hall Clinic", "roomRentPrivate": "6000"},
        ],
        "roomTypes": [{"name": "General", "rent": "2500"}, {"name": "Private", "rent": "6000"}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_submit_basic_kyp(db, make_client, cases, bd, insurance, insurance_head):
    lead = cases.lead()
    client = await make_client(bd)

    res = await client.post("/kyp/submit", json=_basic_payload(lead, city="Mumbai"))
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "PENDING"
    assert data["insuranceCard"] == "CARD-001"
    assert data["submittedById"] == str(bd.id)

    db.refresh(lead)
    assert lead.case_stage == "KYP_BASIC_PENDING"
    assert lead.pipeline_stage == "KYP"
    assert lead.city == "Mumbai"

    history = db.query(CaseStageHistory).filter(CaseStageHistory.lead_id == lead.id).all()
    assert len(history) == 1
    assert (history[0].from_stage, history[0].to_stage) == ("NEW_LEAD", "KYP_BASIC_PENDING")
    assert history[0].changed_by_id == bd.id

    chat = db.query(CaseChatMessage).filter(CaseChatMessage.lead_id == lead.id).all()
    assert [m.type for m in chat] == ["SYSTEM"]
    assert "KYP (Basic)" in chat[0].content

    notified = {n.user_id for n in db.query(Notification).filter(Notification.type == "KYP_SUBMITTED")}
    assert notified == {insurance.id, insurance_head.id}


@pytest.mark.asyncio
async def test_submit_basic_requires_card_location_area(db, make_client, cases, bd):
    lead = cases.lead()
    client = await make_client(bd)

    res = await client.post("/kyp/submit", json=_basic_payload(lead, area="  "))
    assert res.status_code == 400
    assert res.json()["error"] == "Insurance card, location and area are required for KYP (Basic)"

    db.refresh(lead)
    assert lead.case_stage == "NEW_LEAD"
    assert db.query(KYPSubmission).count() == 0


@pytest.mark.asyncio
async def test_submit_basic_card_file_counts_as_card(make_client, cases, bd):
    lead = cases.lead()
    client = await make_client(bd)
    res = await client.post(
        "/kyp/submit",
        json=_basic_payload(lead, insuranceCard=None, insuranceCardFiles=["s3://cards/1.jpg"]),
    )
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_submit_basic_twice(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    res = await (await make_client(bd)).post("/kyp/submit", json=_basic_payload(lead))
    assert res.status_code == 400
    assert res.json()["error"] == "KYP submission already exists for this lead"


@pytest.mark.asyncio
async def test_insurance_cannot_submit_kyp(make_client, cases, insurance):
    lead = cases.lead()
    res = await (await make_client(insurance)).post("/kyp/submit", json=_basic_payload(lead))
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_detailed_before_hospitals_suggested(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    res = await (await make_client(bd)).post(
        "/kyp/submit",
        json={"leadId": str(lead.id), "type": "detailed", "disease": "Hernia"},
    )
    assert res.status_code == 403
    error = res.json()["error"]
    assert "Current stage: KYP_BASIC_PENDING" in error
    assert "Insurance must suggest hospitals first." in error


@pytest.mark.asyncio
async def test_detailed_requires_disease(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    res = await (await make_client(bd)).post(
        "/kyp/submit", json={"leadId": str(lead.id), "type": "detailed"}
    )
    assert res.status_code == 400
    assert res.json()["error"] == "Disease is required for KYP (Detailed)"


@pytest.mark.asyncio
async def test_suggest_hospitals(db, make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    client = await make_client(insurance)

    res = await client.post("/kyp/pre-auth", json=_suggest_payload(lead))
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["sumInsured"] == "500000"
    assert data["hospitalSuggestions"] == ["Apollo Hospital", "Ruby Hall Clinic"]
    assert sorted(h["hospitalName"] for h in data["suggestedHospitals"]) == [
        "Apollo Hospital",
        "Ruby Hall Clinic",
    ]
    assert data["roomTypes"][1] == {"name": "Private", "rent": "6000"}
    assert data["approvalStatus"] == "PENDING"

    db.refresh(lead)
    assert lead.case_stage == "KYP_BASIC_COMPLETE"
    assert lead.pipeline_stage == "INSURANCE"
    assert lead.kyp_submission.status == "KYP_DETAILS_ADDED"

    notes = [n.user_id for n in db.query(Notification).filter(Notification.type == "KYP_DETAILS_ADDED")]
    assert notes == [bd.id]


@pytest.mark.asyncio
async def test_suggest_hospitals_requires_sum_insured(db, make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    res = await (await make_client(insurance)).post(
        "/kyp/pre-auth", json=_suggest_payload(lead, sumInsured=None)
    )
    assert res.status_code == 400
    assert res.json()["error"] == "Sum insured and at least one hospital are required"
    db.refresh(lead)
    assert lead.case_stage == "KYP_BASIC_PENDING"
    assert db.query(HospitalSuggestion).count() == 0


@pytest.mark.asyncio
async def test_bd_cannot_suggest_hospitals(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    res = await (await make_client(bd)).post("/kyp/pre-auth", json=_suggest_payload(lead))
    assert res.status_code == 403
    assert res.json()["error"] == "Role 'bd' is not allowed to suggest hospitals"


@pytest.mark.asyncio
async def test_insurance_edits_details_without_moving_stage(db, make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.KYP_DETAILED_COMPLETE)
    history_before = db.query(CaseStageHistory).count()

    res = await (await make_client(insurance)).post(
        "/kyp/pre-auth",
        json={
            "leadId": str(lead.id),
            "copay": "20%",
            "hospitals": [{"hospitalName": "Jehangir Hospital"}],
        },
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["copay"] == "20%"
    assert data["sumInsured"] == "500000"
    assert [h["hospitalName"] for h in data["suggestedHospitals"]] == ["Jehangir Hospital"]

    db.refresh(lead)
    assert lead.case_stage == "KYP_DETAILED_COMPLETE"
    assert db.query(CaseStageHistory).count() == history_before


@pytest.mark.asyncio
async def test_insurance_details_locked_after_approval(make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_COMPLETE)
    res = await (await make_client(insurance)).post(
        "/kyp/pre-auth", json={"leadId": str(lead.id), "copay": "5%"}
    )
    assert res.status_code == 403
    assert "Current stage: PREAUTH_COMPLETE" in res.json()["error"]


@pytest.mark.asyncio
async def test_follow_up_requires_approved_pre_auth(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    res = await (await make_client(bd)).post(
        "/kyp/follow-up", json={"leadId": str(lead.id), "doctorName": "Dr. Mehta"}
    )
    assert res.status_code == 400
    assert "must be complete" in res.json()["error"]


@pytest.mark.asyncio
async def test_follow_up_after_approval(db, make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_COMPLETE)
    history_before = db.query(CaseStageHistory).count()
    client = await make_client(bd)

    res = await client.post(
        "/kyp/follow-up",
        json={
            "leadId": str(lead.id),
            "admissionDate": "2026-03-01",
            "hospitalName": "Apollo Hospital",
            "doctorName": "Dr. Mehta",
        },
    )
    assert res.status_code == 200
    assert res.json()["data"]["doctorName"] == "Dr. Mehta"

    # Updating again keeps the single follow-up record
    res = await client.post(
        "/kyp/follow-up", json={"leadId": str(lead.id), "report": "CBC normal"}
    )
    data = res.json()["data"]
    assert data["doctorName"] == "Dr. Mehta"
    assert data["report"] == "CBC normal"

    db.refresh(lead)
    assert lead.case_stage == "PREAUTH_COMPLETE"
    assert lead.kyp_submission.status == "FOLLOW_UP_COMPLETE"
    assert db.query(CaseStageHistory).count() == history_before

    recipients = {
        n.user_id for n in db.query(Notification).filter(Notification.type == "FOLLOW_UP_COMPLETE")
    }
    assert insurance.id in recipients
    assert bd.id not in recipients


@pytest.mark.asyncio
async def test_submit_kyp_unknown_lead(make_client, bd):
    res = await (await make_client(bd)).post(
        "/kyp/submit", json={"leadId": str(uuid.uuid4()), "insuranceCard": "X"}
    )
    assert res.status_code == 404
    assert res.json()["error"] == "Lead not found"


@pytest.mark.asyncio
async def test_detailed_kyp_copies_patient_fields(db, make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    res = await (await make_client(bd)).post(
        "/kyp/submit",
        json={
            "leadId": str(lead.id),
            "type": "detailed",
            "disease": " Kidney stones ",
            "patientConsent": True,
            "insuranceName": "Star Health",
        },
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["disease"] == "Kidney stones"
    assert data["patientConsent"] is True

    db.expire_all()
    lead = db.get(Lead, lead.id)
    assert lead.case_stage == "KYP_DETAILED_COMPLETE"
    assert lead.insurance_name == "Star Health"
