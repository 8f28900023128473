"""Per-lead case chat thread."""

import pytest

from app.db.enums import CaseStage, Role


@pytest.mark.asyncio
async def test_thread_shows_system_and_user_messages(make_client, cases, bd, insurance):
    lead = cases.at_stage(CaseStage.KYP_BASIC_COMPLETE)

    res = await (await make_client(insurance)).post(
        f"/leads/{lead.id}/chat", json={"content": "  Please share the discharge summary  "}
    )
    assert res.status_code == 200
    posted = res.json()["data"]
    assert posted["type"] == "USER"
    assert posted["senderId"] == str(insurance.id)
    assert posted["content"] == "Please share the discharge summary"

    res = await (await make_client(bd)).get(f"/leads/{lead.id}/chat")
    messages = res.json()["data"]
    assert [m["type"] for m in messages] == ["SYSTEM", "SYSTEM", "USER"]
    assert messages[0]["senderId"] is None
    assert messages[0]["content"].startswith("BD submitted KYP (Basic)")
    assert messages[1]["content"].startswith("Insurance suggested 2 hospital(s)")


@pytest.mark.asyncio
async def test_chat_requires_lead_access(make_client, cases, other_bd):
    lead = cases.lead()
    client = await make_client(other_bd)

    res = await client.get(f"/leads/{lead.id}/chat")
    assert res.status_code == 403

    res = await client.post(f"/leads/{lead.id}/chat", json={"content": "hello"})
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_chat_rejects_empty_message(make_client, cases, bd):
    lead = cases.lead()
    res = await (await make_client(bd)).post(f"/leads/{lead.id}/chat", json={"content": ""})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_role_without_lead_access_cannot_read_chat(make_client, make_user, cases):
    hr = make_user(Role.HR_HEAD)
    lead = cases.lead()
    res = await (await make_client(hr)).get(f"/leads/{lead.id}/chat")
    assert res.status_code == 403
    assert res.json()["error"] == "Missing permission 'leads:read'"
