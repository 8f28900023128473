"""Stage registry: the one table of case-stage transitions.

Every workflow handler looks its action up here. An entry names the stages
the action may start from, the single stage it produces (None when the
action only updates a sub-status), and who may perform it.
"""

from dataclasses import dataclass, field

from app.core.permissions import PermissionKey
from app.db.enums import (
    CaseAction,
    CaseStage,
    IpdStatus,
    LEGACY_STAGES,
    ROLES_INSURANCE_SIDE,
    Role,
)


@dataclass(frozen=True)
class StageTransition:
    action: CaseAction
    verb: str  # used in guard messages: "Cannot <verb>. Current stage: ..."
    from_stages: frozenset[CaseStage]
    to_stage: CaseStage | None
    permission: PermissionKey
    roles: frozenset[Role]
    chat_worthy: bool
    requirement: str
    # Parameterized actions: outcome value -> produced stage. Outcomes not
    # listed leave the stage unchanged.
    outcome_stages: dict[str, CaseStage] = field(default_factory=dict)


_BD_ROLES = frozenset({Role.BD, Role.SALES_HEAD, Role.ADMIN})
_BD_ADMIN = frozenset({Role.BD, Role.ADMIN})
_INSURANCE_ROLES = ROLES_INSURANCE_SIDE

_LOSABLE_STAGES = frozenset(
    {
        CaseStage.KYP_BASIC_COMPLETE,
        CaseStage.HOSPITALS_SUGGESTED,
        CaseStage.KYP_DETAILED_PENDING,
        CaseStage.KYP_DETAILED_COMPLETE,
        CaseStage.PREAUTH_RAISED,
        CaseStage.PREAUTH_COMPLETE,
        CaseStage.KYP_PENDING,
        CaseStage.KYP_COMPLETE,
    }
)


STAGE_TRANSITIONS: dict[CaseAction, StageTransition] = {
    CaseAction.SUBMIT_KYP_BASIC: StageTransition(
        action=CaseAction.SUBMIT_KYP_BASIC,
        verb="submit KYP",
        from_stages=frozenset({CaseStage.NEW_LEAD}),
        to_stage=CaseStage.KYP_BASIC_PENDING,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ROLES,
        chat_worthy=True,
        requirement="KYP can only be submitted for a new lead.",
    ),
    CaseAction.SUGGEST_HOSPITALS: StageTransition(
        action=CaseAction.SUGGEST_HOSPITALS,
        verb="suggest hospitals",
        from_stages=frozenset({CaseStage.KYP_BASIC_PENDING}),
        to_stage=CaseStage.KYP_BASIC_COMPLETE,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=True,
        requirement="BD must submit KYP (Basic) first.",
    ),
    CaseAction.SUBMIT_KYP_DETAILED: StageTransition(
        action=CaseAction.SUBMIT_KYP_DETAILED,
        verb="submit detailed KYP",
        from_stages=frozenset({CaseStage.KYP_BASIC_COMPLETE, CaseStage.HOSPITALS_SUGGESTED}),
        to_stage=CaseStage.KYP_DETAILED_COMPLETE,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ROLES,
        chat_worthy=True,
        requirement="Insurance must suggest hospitals first.",
    ),
    CaseAction.ADD_KYP_DETAILS: StageTransition(
        action=CaseAction.ADD_KYP_DETAILS,
        verb="add KYP details",
        from_stages=frozenset({CaseStage.KYP_PENDING}),
        to_stage=CaseStage.KYP_COMPLETE,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=True,
        requirement="KYP must be pending insurance review.",
    ),
    CaseAction.UPDATE_KYP_DETAILS: StageTransition(
        action=CaseAction.UPDATE_KYP_DETAILS,
        verb="update pre-auth",
        from_stages=frozenset(
            {
                CaseStage.KYP_COMPLETE,
                CaseStage.KYP_DETAILED_PENDING,
                CaseStage.KYP_DETAILED_COMPLETE,
            }
        ),
        to_stage=None,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=False,
        requirement="Details can only be edited before pre-auth is raised.",
    ),
    CaseAction.RAISE_PREAUTH: StageTransition(
        action=CaseAction.RAISE_PREAUTH,
        verb="raise pre-auth",
        from_stages=frozenset(
            {
                CaseStage.KYP_DETAILED_PENDING,
                CaseStage.KYP_DETAILED_COMPLETE,
                CaseStage.KYP_COMPLETE,
            }
        ),
        to_stage=CaseStage.PREAUTH_RAISED,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ADMIN,
        chat_worthy=True,
        requirement="KYP (Detailed) must be complete before raising pre-auth.",
    ),
    CaseAction.APPROVE_PREAUTH: StageTransition(
        action=CaseAction.APPROVE_PREAUTH,
        verb="approve pre-auth",
        from_stages=frozenset({CaseStage.PREAUTH_RAISED}),
        to_stage=CaseStage.PREAUTH_COMPLETE,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=True,
        requirement="Pre-auth must be raised first.",
    ),
    CaseAction.REJECT_PREAUTH: StageTransition(
        action=CaseAction.REJECT_PREAUTH,
        verb="reject pre-auth",
        from_stages=frozenset({CaseStage.PREAUTH_RAISED}),
        to_stage=None,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=False,
        requirement="Pre-auth must be raised first.",
    ),
    CaseAction.MARK_NEW_HOSPITAL_RAISED: StageTransition(
        action=CaseAction.MARK_NEW_HOSPITAL_RAISED,
        verb="mark new hospital pre-auth",
        from_stages=frozenset({CaseStage.PREAUTH_RAISED}),
        to_stage=None,
        permission=PermissionKey.INSURANCE_WRITE,
        roles=_INSURANCE_ROLES,
        chat_worthy=True,
        requirement="Pre-auth must be raised first.",
    ),
    CaseAction.INITIATE_ADMISSION: StageTransition(
        action=CaseAction.INITIATE_ADMISSION,
        verb="initiate admission",
        from_stages=frozenset({CaseStage.PREAUTH_COMPLETE}),
        to_stage=CaseStage.INITIATED,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ADMIN,
        chat_worthy=True,
        requirement="Pre-auth must be complete first.",
    ),
    CaseAction.MARK_IPD: StageTransition(
        action=CaseAction.MARK_IPD,
        verb="mark IPD status",
        from_stages=frozenset({CaseStage.INITIATED}),
        to_stage=None,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ADMIN,
        chat_worthy=True,
        requirement="Admission must be initiated first.",
        outcome_stages={IpdStatus.DISCHARGED.value: CaseStage.DISCHARGED},
    ),
    CaseAction.MARK_DISCHARGED: StageTransition(
        action=CaseAction.MARK_DISCHARGED,
        verb="mark discharged",
        from_stages=frozenset({CaseStage.INITIATED, CaseStage.ADMITTED}),
        to_stage=CaseStage.DISCHARGED,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ADMIN,
        chat_worthy=True,
        requirement="Patient must be admitted first.",
    ),
    CaseAction.ADD_FOLLOW_UP: StageTransition(
        action=CaseAction.ADD_FOLLOW_UP,
        verb="add follow-up",
        from_stages=frozenset(
            {
                CaseStage.PREAUTH_COMPLETE,
                CaseStage.INITIATED,
                CaseStage.ADMITTED,
                CaseStage.DISCHARGED,
            }
        ),
        to_stage=None,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ROLES,
        chat_worthy=False,
        requirement="Pre-auth must be complete first.",
    ),
    CaseAction.MARK_LOST: StageTransition(
        action=CaseAction.MARK_LOST,
        verb="mark as lost",
        from_stages=_LOSABLE_STAGES,
        to_stage=None,
        permission=PermissionKey.LEADS_WRITE,
        roles=_BD_ADMIN,
        chat_worthy=True,
        requirement="Only in-progress cases before admission can be marked lost.",
    ),
}


def get_transition(action: CaseAction) -> StageTransition:
    """Look up the transition rule for an action."""
    return STAGE_TRANSITIONS[action]


def next_stage(action: CaseAction, outcome: str | None = None) -> CaseStage | None:
    """
    Stage an action produces, or None when the stage is left unchanged.

    Parameterized actions (MARK_IPD) resolve through outcome_stages.
    """
    rule = STAGE_TRANSITIONS[action]
    if rule.outcome_stages:
        if outcome is None:
            return None
        return rule.outcome_stages.get(outcome)
    return rule.to_stage


def can_start_from(action: CaseAction, stage: str) -> bool:
    return stage in STAGE_TRANSITIONS[action].from_stages


def allowed_actions(stage: str, role: Role | str) -> list[CaseAction]:
    """Actions a role may attempt from a stage (ownership not considered)."""
    from app.core.permissions import has_permission

    role_value = role.value if isinstance(role, Role) else role
    return [
        rule.action
        for rule in STAGE_TRANSITIONS.values()
        if stage in rule.from_stages
        and role_value in {r.value for r in rule.roles}
        and has_permission(role_value, rule.permission)
    ]


def is_legacy_stage(stage: str) -> bool:
    return stage in LEGACY_STAGES
