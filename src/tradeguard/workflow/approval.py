"""キャンペーン承認ワークフローの状態遷移と監査証跡の管理。"""

import logging
import uuid
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from tradeguard.models.campaign import (
    ApprovalActionType,
    ApprovalMetrics,
    ApprovalStatus,
    ApprovalValidation,
    Campaign,
    CampaignApprovalAction,
    CampaignApprovalStatus,
    CampaignWithApproval,
    ComplianceLevel,
    LastAction,
    RejectionReasonCount,
    WorkflowStatus,
)
from tradeguard.models.errors import IllegalTransitionError

logger = logging.getLogger(__name__)

_AWAITING_DECISION = frozenset({ApprovalStatus.DRAFT, ApprovalStatus.PENDING_REVIEW})
_PENDING_BUCKET = frozenset(
    {ApprovalStatus.DRAFT, ApprovalStatus.PENDING_REVIEW, ApprovalStatus.PENDING_CHANGES}
)
_APPROVED_BUCKET = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.LIVE})

# 操作ごとに実行可能な遷移元ステータス。approved / live / rejected は終端。
_LEGAL_SOURCES: dict[ApprovalActionType, frozenset[ApprovalStatus]] = {
    ApprovalActionType.APPROVE: _AWAITING_DECISION,
    ApprovalActionType.REJECT: _AWAITING_DECISION,
    ApprovalActionType.REQUEST_CHANGES: _AWAITING_DECISION,
    ApprovalActionType.REVISE: _AWAITING_DECISION | {ApprovalStatus.PENDING_CHANGES},
}

MIN_MONTHLY_BUDGET = 100
MIN_TOTAL_KEYWORDS = 5
MIN_HEADLINES = 3
TOP_REJECTION_REASONS = 5


def _default_id_factory() -> str:
    return f"action_{uuid.uuid4().hex}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CampaignApprovalWorkflow:
    """キャンペーン承認ステータスの状態遷移を行う。

    すべての操作は入力レコードを変更せず、履歴を追記した新しいレコードを返す
    （コピーオンライト）。承認前バリデーションは呼び出し側が組み合わせる前提で、
    ここでは強制しない。
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _default_id_factory

    @staticmethod
    def can_perform(status: ApprovalStatus, action: ApprovalActionType) -> bool:
        """指定ステータスから操作が実行可能かを返す。"""
        return status in _LEGAL_SOURCES[action]

    def initialize_campaign(self, campaign: Campaign) -> CampaignWithApproval:
        """新規キャンペーンを draft 状態で登録する。"""
        return CampaignWithApproval(
            campaign=campaign,
            approval=CampaignApprovalStatus(status=ApprovalStatus.DRAFT, last_modified=self._clock()),
        )

    def approve_campaign(
        self,
        record: CampaignWithApproval,
        user_id: str,
        *,
        push_live: bool = False,
        notes: str | None = None,
    ) -> CampaignWithApproval:
        """キャンペーンを承認する。

        Args:
            record: 対象キャンペーン。
            user_id: 操作ユーザーID。
            push_live: True の場合、承認と同時に公開済み（live）とする。
            notes: 承認メモ。ステータスではなく操作履歴のメタデータに記録する。

        Raises:
            IllegalTransitionError: draft / pending_review 以外から承認しようとした場合。
        """
        action = self._new_action(
            record,
            ApprovalActionType.APPROVE,
            user_id,
            metadata={"push_live": push_live, "notes": notes},
        )
        status = ApprovalStatus.LIVE if push_live else ApprovalStatus.APPROVED
        return self._apply(
            record,
            action,
            status=status,
            approved_by=user_id,
            approved_at=action.timestamp,
        )

    def reject_campaign(self, record: CampaignWithApproval, user_id: str, reason: str) -> CampaignWithApproval:
        """キャンペーンを却下する。

        Raises:
            IllegalTransitionError: draft / pending_review 以外から却下しようとした場合。
        """
        action = self._new_action(record, ApprovalActionType.REJECT, user_id, reason=reason)
        return self._apply(
            record,
            action,
            status=ApprovalStatus.REJECTED,
            rejected_by=user_id,
            rejected_at=action.timestamp,
            rejection_reason=reason,
        )

    def request_changes(self, record: CampaignWithApproval, user_id: str, changes: str) -> CampaignWithApproval:
        """キャンペーンの修正を依頼する。

        Raises:
            IllegalTransitionError: draft / pending_review 以外から依頼しようとした場合。
        """
        action = self._new_action(record, ApprovalActionType.REQUEST_CHANGES, user_id, changes=changes)
        return self._apply(
            record,
            action,
            status=ApprovalStatus.PENDING_CHANGES,
            changes_requested=changes,
        )

    def revise_campaign(
        self,
        record: CampaignWithApproval,
        user_id: str,
        revisions: dict[str, Any] | None = None,
    ) -> CampaignWithApproval:
        """キャンペーンを修正し、再レビュー待ちにする。

        Args:
            record: 対象キャンペーン。
            user_id: 操作ユーザーID。
            revisions: キャンペーンの更新フィールド。id と created_at は変更できない。

        Raises:
            IllegalTransitionError: 終端ステータスから修正しようとした場合。
        """
        revisions = {k: v for k, v in (revisions or {}).items() if k not in ("id", "created_at")}
        action = self._new_action(
            record,
            ApprovalActionType.REVISE,
            user_id,
            metadata={"revised_fields": sorted(revisions)},
        )
        campaign = (
            Campaign.model_validate({**record.campaign.model_dump(), **revisions}) if revisions else record.campaign
        )
        return self._apply(
            record,
            action,
            campaign=campaign,
            status=ApprovalStatus.PENDING_REVIEW,
            revision_count=record.approval.revision_count + 1,
            changes_requested=None,
        )

    def get_workflow_status(self, record: CampaignWithApproval) -> WorkflowStatus:
        """表示用にワークフロー状態をまとめる。"""
        approval = record.approval
        last = approval.history[-1] if approval.history else None
        return WorkflowStatus(
            current_status=approval.status,
            can_approve=self.can_perform(approval.status, ApprovalActionType.APPROVE),
            can_reject=self.can_perform(approval.status, ApprovalActionType.REJECT),
            can_request_changes=self.can_perform(approval.status, ApprovalActionType.REQUEST_CHANGES),
            can_revise=self.can_perform(approval.status, ApprovalActionType.REVISE),
            revision_count=approval.revision_count,
            last_action=LastAction(action=last.action, timestamp=last.timestamp, user=last.user_id) if last else None,
            approved_by=approval.approved_by,
            approved_at=approval.approved_at,
            rejected_by=approval.rejected_by,
            rejected_at=approval.rejected_at,
            rejection_reason=approval.rejection_reason,
            changes_requested=approval.changes_requested,
        )

    @staticmethod
    def validate_for_approval(record: CampaignWithApproval) -> ApprovalValidation:
        """承認前チェック。errors が空でなければ承認すべきでない。"""
        campaign = record.campaign
        errors: list[str] = []
        warnings: list[str] = []

        if campaign.compliance.level == ComplianceLevel.LOW:
            errors.append("Campaign has compliance issues that must be resolved")

        if campaign.budget is not None:
            if campaign.budget < MIN_MONTHLY_BUDGET:
                warnings.append(f"Budget is below recommended minimum of £{MIN_MONTHLY_BUDGET}")
        elif campaign.daily_budget is not None and campaign.daily_budget * 30 < MIN_MONTHLY_BUDGET:
            warnings.append(f"Monthly budget is below recommended minimum of £{MIN_MONTHLY_BUDGET}")

        if not campaign.ad_groups:
            errors.append("Campaign must have at least one ad group")

        total_keywords = sum(len(group.keywords) for group in campaign.ad_groups)
        if total_keywords < MIN_TOTAL_KEYWORDS:
            warnings.append("Consider adding more keywords for better reach")

        for index, group in enumerate(campaign.ad_groups, start=1):
            if group.ad_copy is None or not group.ad_copy.headlines:
                errors.append(f'Ad group "{group.name}" has no ad headlines')
            if group.ad_copy is not None and len(group.ad_copy.headlines) < MIN_HEADLINES:
                warnings.append(f"Ad group {index} should have at least {MIN_HEADLINES} headlines")

        return ApprovalValidation(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    @staticmethod
    def get_approval_metrics(records: Iterable[CampaignWithApproval]) -> ApprovalMetrics:
        """キャンペーン集合の承認メトリクスを集計する。

        平均承認時間（時間単位）は承認済みのキャンペーンのみを対象とし、
        1件もない場合は None。
        """
        records = list(records)
        total = len(records)
        approved = sum(1 for r in records if r.approval.status in _APPROVED_BUCKET)
        rejected = sum(1 for r in records if r.approval.status == ApprovalStatus.REJECTED)
        pending = sum(1 for r in records if r.approval.status in _PENDING_BUCKET)
        revised = sum(1 for r in records if r.approval.revision_count > 0)

        approval_hours = [
            (r.approval.approved_at - r.campaign.created_at).total_seconds() / 3600
            for r in records
            if r.approval.approved_at is not None
        ]

        reasons: Counter[str] = Counter(
            action.reason
            for r in records
            for action in r.approval.history
            if action.action == ApprovalActionType.REJECT and action.reason
        )

        def rate(count: int) -> float:
            return count / total if total else 0.0

        return ApprovalMetrics(
            total=total,
            approved=approved,
            rejected=rejected,
            pending=pending,
            approval_rate=rate(approved),
            rejection_rate=rate(rejected),
            pending_rate=rate(pending),
            average_approval_hours=sum(approval_hours) / len(approval_hours) if approval_hours else None,
            revision_rate=rate(revised),
            top_rejection_reasons=tuple(
                RejectionReasonCount(reason=reason, count=count)
                for reason, count in reasons.most_common(TOP_REJECTION_REASONS)
            ),
        )

    def _new_action(
        self,
        record: CampaignWithApproval,
        action_type: ApprovalActionType,
        user_id: str,
        **fields: Any,
    ) -> CampaignApprovalAction:
        status = record.approval.status
        if not self.can_perform(status, action_type):
            raise IllegalTransitionError(record.id, status.value, action_type.value)
        return CampaignApprovalAction(
            id=self._id_factory(),
            campaign_id=record.id,
            action=action_type,
            user_id=user_id,
            timestamp=self._clock(),
            **fields,
        )

    def _apply(
        self,
        record: CampaignWithApproval,
        action: CampaignApprovalAction,
        *,
        campaign: Campaign | None = None,
        **approval_updates: Any,
    ) -> CampaignWithApproval:
        approval = record.approval.model_copy(
            update={
                **approval_updates,
                "last_modified": action.timestamp,
                "history": (*record.approval.history, action),
            }
        )
        logger.info(
            "Campaign %s: %s by %s (%s -> %s)",
            record.id,
            action.action.value,
            action.user_id,
            record.approval.status.value,
            approval.status.value,
        )
        return record.model_copy(update={"campaign": campaign or record.campaign, "approval": approval})
