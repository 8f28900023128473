"""Insurance queries on a pre-authorization: raise, answer, resolve, read."""

import uuid

import pytest

from app.db.enums import CaseStage
from app.db.models import CaseStageHistory, InsuranceQuery, Notification


def _pre_auth_id(lead):
    return str(lead.kyp_submission.pre_auth.id)


async def _raise(client, lead, question="Please share the latest discharge summary"):
    res = await client.post(
        "/kyp/queries", json={"preAuthorizationId": _pre_auth_id(lead), "question": question}
    )
    assert res.status_code == 200, res.json()
    return res.json()["data"]


@pytest.mark.asyncio
async def test_query_loop(db, make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    history_before = db.query(CaseStageHistory).filter(CaseStageHistory.lead_id == lead.id).count()
    ins_client = await make_client(insurance)
    bd_client = await make_client(bd)

    res = await ins_client.post(
        "/kyp/queries",
        json={"preAuthorizationId": _pre_auth_id(lead), "question": "  Copay on room upgrade?  "},
    )
    assert res.status_code == 200
    assert res.json()["message"] == "Query raised successfully"
    raised = res.json()["data"]
    assert raised["status"] == "PENDING"
    assert raised["question"] == "Copay on room upgrade?"
    assert raised["leadId"] == str(lead.id)
    assert raised["leadRef"] == lead.lead_ref
    assert raised["raisedByName"] == "Insurance Desk"
    assert raised["answer"] is None

    to_bd = db.query(Notification).filter(Notification.type == "QUERY_RAISED").all()
    assert [(n.user_id, n.title, n.entity_id) for n in to_bd] == [
        (bd.id, "New Query Raised", uuid.UUID(raised["id"]))
    ]

    res = await bd_client.post(
        f"/kyp/queries/{raised['id']}/answer", json={"answer": "Patient will pay the difference"}
    )
    assert res.status_code == 200
    answered = res.json()["data"]
    assert answered["status"] == "ANSWERED"
    assert answered["answer"] == "Patient will pay the difference"
    assert answered["answeredByName"] == "Asha BD"
    assert answered["answeredAt"] is not None

    to_insurance = db.query(Notification).filter(Notification.type == "QUERY_ANSWERED").all()
    assert [(n.user_id, n.title) for n in to_insurance] == [(insurance.id, "Query Answered")]

    res = await ins_client.post(f"/kyp/queries/{raised['id']}/resolve")
    assert res.status_code == 200
    assert res.json()["message"] == "Query resolved successfully"
    resolved = res.json()["data"]
    assert resolved["status"] == "RESOLVED"
    assert resolved["resolvedById"] == str(insurance.id)
    assert resolved["resolvedAt"].endswith("Z") or resolved["resolvedAt"].endswith("+00:00")

    # The query loop never touches the case stage
    db.refresh(lead)
    assert lead.case_stage == "PREAUTH_RAISED"
    assert (
        db.query(CaseStageHistory).filter(CaseStageHistory.lead_id == lead.id).count()
        == history_before
    )


@pytest.mark.asyncio
async def test_resolve_requires_answer(db, make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    client = await make_client(insurance)
    query = await _raise(client, lead)

    res = await client.post(f"/kyp/queries/{query['id']}/resolve")
    assert res.status_code == 400
    assert res.json()["error"] == "Query must be answered before it can be resolved"
    assert db.get(InsuranceQuery, uuid.UUID(query["id"])).status == "PENDING"


@pytest.mark.asyncio
async def test_resolved_query_cannot_be_answered_again(make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    ins_client = await make_client(insurance)
    bd_client = await make_client(bd)
    query = await _raise(ins_client, lead)
    url = f"/kyp/queries/{query['id']}"

    assert (await bd_client.post(f"{url}/answer", json={"answer": "First"})).status_code == 200
    # Re-answering an open query replaces the answer
    res = await bd_client.post(f"{url}/answer", json={"answer": "Corrected"})
    assert res.json()["data"]["answer"] == "Corrected"

    assert (await ins_client.post(f"{url}/resolve")).status_code == 200
    res = await bd_client.post(f"{url}/answer", json={"answer": "Too late"})
    assert res.status_code == 400
    assert res.json()["error"] == "Query is already resolved"

    res = await ins_client.post(f"{url}/resolve")
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_query_roles(db, make_client, cases, bd, insurance, team_lead):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    bd_client = await make_client(bd)

    res = await bd_client.post(
        "/kyp/queries", json={"preAuthorizationId": _pre_auth_id(lead), "question": "Why?"}
    )
    assert res.status_code == 403
    assert res.json()["error"] == "Only Insurance team can raise queries"
    assert db.query(InsuranceQuery).count() == 0

    ins_client = await make_client(insurance)
    query = await _raise(ins_client, lead)

    res = await ins_client.post(f"/kyp/queries/{query['id']}/answer", json={"answer": "Self"})
    assert res.status_code == 403
    assert res.json()["error"] == "Only BD can answer queries"

    res = await bd_client.post(f"/kyp/queries/{query['id']}/resolve")
    assert res.status_code == 403
    assert res.json()["error"] == "Only Insurance team can resolve queries"

    # Team lead answers for a BD on their team
    res = await (await make_client(team_lead)).post(
        f"/kyp/queries/{query['id']}/answer", json={"answer": "Answered by TL"}
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "ANSWERED"


@pytest.mark.asyncio
async def test_other_bd_cannot_see_or_answer(make_client, cases, insurance, other_bd):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    query = await _raise(await make_client(insurance), lead)
    client = await make_client(other_bd)

    res = await client.post(f"/kyp/queries/{query['id']}/answer", json={"answer": "Not mine"})
    assert res.status_code == 403
    assert res.json()["error"] == "You do not have access to this lead"

    res = await client.get(f"/kyp/queries/{query['id']}")
    assert res.status_code == 403

    res = await client.get("/kyp/queries")
    assert res.json()["data"] == []


@pytest.mark.asyncio
async def test_list_and_get_queries(make_client, cases, bd, insurance):
    first = cases.at_stage(CaseStage.PREAUTH_RAISED)
    second = cases.at_stage(CaseStage.KYP_DETAILED_COMPLETE)
    ins_client = await make_client(insurance)
    bd_client = await make_client(bd)

    q1 = await _raise(ins_client, first, "First question")
    q2 = await _raise(ins_client, second, "Second question")
    await bd_client.post(f"/kyp/queries/{q1['id']}/answer", json={"answer": "Done"})

    listed = (await bd_client.get("/kyp/queries")).json()["data"]
    assert {q["id"] for q in listed} == {q1["id"], q2["id"]}

    pending = (await ins_client.get("/kyp/queries?status=PENDING")).json()["data"]
    assert [q["id"] for q in pending] == [q2["id"]]

    by_pre_auth = (
        await ins_client.get(f"/kyp/queries?preAuthorizationId={_pre_auth_id(first)}")
    ).json()["data"]
    assert [q["id"] for q in by_pre_auth] == [q1["id"]]

    res = await ins_client.get("/kyp/queries?status=CLOSED")
    assert res.status_code == 400

    detail = (await bd_client.get(f"/kyp/queries/{q1['id']}")).json()["data"]
    assert detail["answer"] == "Done"
    assert detail["patientName"] == "Ravi Kumar"


@pytest.mark.asyncio
async def test_raise_query_validation(make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    client = await make_client(insurance)

    res = await client.post(
        "/kyp/queries", json={"preAuthorizationId": str(uuid.uuid4()), "question": "Anyone?"}
    )
    assert res.status_code == 404
    assert res.json()["error"] == "Pre-authorization not found"

    res = await client.post(
        "/kyp/queries", json={"preAuthorizationId": _pre_auth_id(lead), "question": "   "}
    )
    assert res.status_code == 400
    assert res.json()["error"].startswith("Invalid request data:")

    res = await client.get(f"/kyp/queries/{uuid.uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"] == "Query not found"


@pytest.mark.asyncio
async def test_query_mutations_need_csrf_header(db, make_client, cases, insurance):
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)
    client = await make_client(insurance, csrf=False)
    res = await client.post(
        "/kyp/queries", json={"preAuthorizationId": _pre_auth_id(lead), "question": "Why?"}
    )
    assert res.status_code == 403
    assert db.query(InsuranceQuery).count() == 0

    # Reads do not
    assert (await client.get("/kyp/queries")).status_code == 200
