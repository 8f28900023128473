"""Lead endpoints: create, list scoping, detail, stage history, mark lost."""

import uuid

import pytest

from app.db.enums import CaseStage
from app.db.models import CaseChatMessage, CaseStageHistory, Lead


@pytest.mark.asyncio
async def test_create_lead_envelope(db, make_client, bd):
    client = await make_client(bd)
    res = await client.post(
        "/leads",
        json={"patientName": "  Ravi   Kumar ", "phoneNumber": "98765 43210", "city": "Pune"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Lead created successfully"
    data = body["data"]
    assert data["patientName"] == "Ravi Kumar"
    assert data["phoneNumber"] == "+919876543210"
    assert data["caseStage"] == "NEW_LEAD"
    assert data["pipelineStage"] == "NEW"
    assert data["bdId"] == str(bd.id)
    assert data["leadRef"].startswith("L-")

    # Creation is not a stage change
    assert db.query(CaseStageHistory).count() == 0


@pytest.mark.asyncio
async def test_create_lead_rejects_bad_phone(make_client, bd):
    client = await make_client(bd)
    res = await client.post("/leads", json={"patientName": "Ravi", "phoneNumber": "12345"})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"].startswith("Invalid request data:")
    assert body["message"] is None


@pytest.mark.asyncio
async def test_insurance_cannot_create_lead(make_client, insurance):
    client = await make_client(insurance)
    res = await client.post("/leads", json={"patientName": "Ravi"})
    assert res.status_code == 403
    assert res.json()["error"] == "Role 'insurance' cannot create leads"


@pytest.mark.asyncio
async def test_bd_cannot_create_lead_for_another_bd(make_client, bd, other_bd):
    client = await make_client(bd)
    res = await client.post("/leads", json={"patientName": "Ravi", "bdId": str(other_bd.id)})
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_admin_assigns_lead_to_bd(make_client, admin, other_bd):
    client = await make_client(admin)
    res = await client.post("/leads", json={"patientName": "Ravi", "bdId": str(other_bd.id)})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["bdId"] == str(other_bd.id)
    assert data["teamId"] == str(other_bd.team_id)


@pytest.mark.asyncio
async def test_unauthenticated_requests_get_401(make_client):
    client = await make_client()
    res = await client.get("/leads")
    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "Not authenticated", "message": None}


@pytest.mark.asyncio
async def test_post_without_csrf_header_is_rejected(db, make_client, bd):
    client = await make_client(bd, csrf=False)
    res = await client.post("/leads", json={"patientName": "Ravi"})
    assert res.status_code == 403
    assert "CSRF" in res.json()["error"]
    assert db.query(Lead).count() == 0


@pytest.mark.asyncio
async def test_unauthenticated_post_without_csrf_gets_401(make_client, cases):
    lead = cases.lead()
    client = await make_client(csrf=False)
    for url, payload in (
        ("/leads", {"patientName": "Ravi"}),
        ("/kyp/submit", {"leadId": str(lead.id)}),
        (f"/leads/{lead.id}/raise-preauth", {}),
        (f"/pre-auth/{uuid.uuid4()}/approve", None),
    ):
        res = await client.post(url, json=payload)
        assert res.status_code == 401, url
        assert res.json()["error"] == "Not authenticated"


@pytest.mark.asyncio
async def test_list_leads_is_scoped(make_client, cases, bd, other_bd, team_lead, insurance):
    own = cases.lead("Own Patient")
    other_client = await make_client(other_bd)
    res = await other_client.post("/leads", json={"patientName": "Other Patient"})
    assert res.status_code == 200
    other_id = res.json()["data"]["id"]

    bd_client = await make_client(bd)
    ids = [item["id"] for item in (await bd_client.get("/leads")).json()["data"]["items"]]
    assert ids == [str(own.id)]

    tl_client = await make_client(team_lead)
    ids = [item["id"] for item in (await tl_client.get("/leads")).json()["data"]["items"]]
    assert ids == [str(own.id)]

    ins_client = await make_client(insurance)
    body = (await ins_client.get("/leads?limit=10&offset=0")).json()["data"]
    assert {item["id"] for item in body["items"]} == {str(own.id), other_id}
    assert body["total"] == 2
    assert body["limit"] == 10


@pytest.mark.asyncio
async def test_list_leads_filters_by_stage(make_client, cases, bd):
    cases.at_stage(CaseStage.NEW_LEAD)
    pending = cases.at_stage(CaseStage.KYP_BASIC_PENDING)
    client = await make_client(bd)
    res = await client.get("/leads?stage=KYP_BASIC_PENDING")
    items = res.json()["data"]["items"]
    assert [item["id"] for item in items] == [str(pending.id)]


@pytest.mark.asyncio
async def test_lead_detail_includes_allowed_actions(make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.KYP_BASIC_PENDING)

    bd_detail = (await (await make_client(bd)).get(f"/leads/{lead.id}")).json()["data"]
    assert bd_detail["caseStage"] == "KYP_BASIC_PENDING"
    assert bd_detail["caseStageLabel"] == "KYP (Basic) Pending"
    assert bd_detail["allowedActions"] == []
    assert bd_detail["kypSubmission"]["location"] == "Pune"
    assert bd_detail["preAuth"] is None

    ins_detail = (await (await make_client(insurance)).get(f"/leads/{lead.id}")).json()["data"]
    assert ins_detail["allowedActions"] == ["suggest_hospitals"]


@pytest.mark.asyncio
async def test_lead_detail_forbidden_for_other_bd(make_client, cases, other_bd):
    lead = cases.lead()
    res = await (await make_client(other_bd)).get(f"/leads/{lead.id}")
    assert res.status_code == 403
    assert res.json()["error"] == "You do not have access to this lead"


@pytest.mark.asyncio
async def test_lead_detail_not_found(make_client, bd):
    res = await (await make_client(bd)).get(f"/leads/{uuid.uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"] == "Lead not found"


@pytest.mark.asyncio
async def test_stage_history_endpoint(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    res = await (await make_client(bd)).get(f"/leads/{lead.id}/stage-history")
    rows = res.json()["data"]
    assert [(r["fromStage"], r["toStage"]) for r in rows] == [
        ("KYP_BASIC_PENDING", "KYP_BASIC_COMPLETE"),
        ("NEW_LEAD", "KYP_BASIC_PENDING"),
    ]
    assert rows[0]["changedByName"] == "Insurance Desk"
    assert rows[1]["changedByName"] == "Asha BD"


@pytest.mark.asyncio
async def test_mark_lost(db, make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    history_before = db.query(CaseStageHistory).count()
    client = await make_client(bd)

    res = await client.post(
        f"/leads/{lead.id}/mark-lost",
        json={"lostReason": "Financial Issue", "lostReasonDetail": "Cannot afford copay"},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["pipelineStage"] == "LOST"
    assert data["caseStage"] == "KYP_BASIC_COMPLETE"
    assert data["lostReason"] == "Financial Issue: Cannot afford copay"
    assert data["lostAt"] is not None

    assert db.query(CaseStageHistory).count() == history_before
    chat = db.query(CaseChatMessage).filter(CaseChatMessage.lead_id == lead.id).all()
    assert any("marked as lost" in m.content for m in chat)

    again = await client.post(f"/leads/{lead.id}/mark-lost", json={"lostReason": "Ghosted"})
    assert again.status_code == 400
    assert again.json()["error"] == "Case is already marked as lost"


@pytest.mark.asyncio
async def test_mark_lost_not_allowed_for_new_lead(make_client, cases, bd):
    lead = cases.lead()
    res = await (await make_client(bd)).post(
        f"/leads/{lead.id}/mark-lost", json={"lostReason": "Ghosted"}
    )
    assert res.status_code == 403
    assert "Current stage: NEW_LEAD" in res.json()["error"]


@pytest.mark.asyncio
async def test_mark_lost_rejects_unknown_reason(make_client, cases, bd):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)
    res = await (await make_client(bd)).post(
        f"/leads/{lead.id}/mark-lost", json={"lostReason": "Bored"}
    )
    assert res.status_code == 400
