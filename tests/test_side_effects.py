"""Chat and notification fan-out after committed transitions."""

import pytest

from app.db.enums import CaseAction, CaseStage, NotificationType, Role
from app.db.models import CaseChatMessage, CaseStageHistory, Notification
from app.services import case_chat_service, case_events, notification_service


def _event(lead, **kwargs):
    defaults = dict(
        lead=lead,
        action=CaseAction.SUBMIT_KYP_BASIC,
        chat_text="System note",
        notification_type=NotificationType.KYP_SUBMITTED,
        title="New KYP Submission",
    )
    defaults.update(kwargs)
    return case_events.CaseEvent(**defaults)


def test_dispatch_skips_actor_and_inactive_users(db, cases, insurance, insurance_head, make_user):
    disabled = make_user(Role.INSURANCE)
    disabled.is_active = False
    db.commit()
    lead = cases.lead()

    case_events.dispatch(
        db,
        _event(
            lead,
            actor_id=insurance.id,
            recipient_roles=["insurance", "insurance_head"],
            recipient_user_ids=[insurance_head.id, disabled.id],
        ),
    )

    rows = db.query(Notification).all()
    assert [n.user_id for n in rows] == [insurance_head.id]
    assert rows[0].link == f"/leads/{lead.id}"
    assert rows[0].entity_id == lead.id


def test_dispatch_posts_chat_only_for_chat_worthy_actions(db, cases):
    lead = cases.lead()
    case_events.dispatch(db, _event(lead, action=CaseAction.REJECT_PREAUTH, notification_type=None))
    case_events.dispatch(db, _event(lead, notification_type=None))

    messages = db.query(CaseChatMessage).filter(CaseChatMessage.lead_id == lead.id).all()
    assert len(messages) == 1
    assert messages[0].type == "SYSTEM"
    assert messages[0].sender_id is None


@pytest.mark.asyncio
async def test_chat_failure_does_not_undo_transition(db, make_client, cases, bd, insurance, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("chat store down")

    monkeypatch.setattr(case_chat_service, "post_system_message", broken)
    lead = cases.lead()

    res = await (await make_client(bd)).post(
        "/kyp/submit",
        json={
            "leadId": str(lead.id),
            "insuranceCard": "CARD-001",
            "location": "Pune",
            "area": "Kothrud",
        },
    )
    assert res.status_code == 200

    db.expire_all()
    db.refresh(lead)
    assert lead.case_stage == "KYP_BASIC_PENDING"
    assert db.query(CaseStageHistory).filter(CaseStageHistory.lead_id == lead.id).count() == 1
    assert db.query(CaseChatMessage).count() == 0
    # Notifications still go out after the chat step fails
    assert [n.user_id for n in db.query(Notification)] == [insurance.id]


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_transition(
    db, make_client, cases, insurance, monkeypatch
):
    def broken(*args, **kwargs):
        raise RuntimeError("notifications down")

    monkeypatch.setattr(notification_service, "create_notifications", broken)
    lead = cases.at_stage(CaseStage.PREAUTH_RAISED)

    res = await (await make_client(insurance)).post(f"/pre-auth/{lead.kyp_submission.id}/approve")
    assert res.status_code == 200

    db.expire_all()
    db.refresh(lead)
    assert lead.case_stage == "PREAUTH_COMPLETE"
    assert lead.kyp_submission.pre_auth.approval_status == "APPROVED"
    chat = [m.content for m in db.query(CaseChatMessage).filter(CaseChatMessage.lead_id == lead.id)]
    assert "Insurance approved pre-auth." in chat


def test_insurance_notify_roles_are_configurable(db, cases, insurance, insurance_head, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "INSURANCE_NOTIFY_ROLES", "Insurance_Head")
    assert case_events.insurance_roles() == ["insurance_head"]

    lead = cases.lead()
    case_events.dispatch(db, _event(lead, recipient_roles=case_events.insurance_roles()))
    assert [n.user_id for n in db.query(Notification)] == [insurance_head.id]
