"""キャンペーン承認フローの永続化とイベント記録を行うサービス。"""

import logging
from collections.abc import Callable
from typing import Any

from tradeguard.events.logger import ComplianceEventLogger, emit_compliance_event
from tradeguard.models.campaign import (
    ApprovalMetrics,
    ApprovalValidation,
    Campaign,
    CampaignApprovalAction,
    CampaignWithApproval,
    WorkflowStatus,
)
from tradeguard.models.errors import CampaignNotApprovableError
from tradeguard.storage.service import CampaignStore
from tradeguard.workflow.approval import CampaignApprovalWorkflow

logger = logging.getLogger(__name__)

APPROVAL_ACTION_EVENT = "campaign_approval_action"


class CampaignService:
    """承認ワークフローとストアを組み合わせる。

    承認前バリデーションでエラーがある場合は承認を拒否する。
    ワークフロー自体はこのチェックを強制しないため、ここで組み合わせる。
    """

    def __init__(
        self,
        store: CampaignStore,
        workflow: CampaignApprovalWorkflow,
        current_acting_user_id: Callable[[], str],
        event_logger: ComplianceEventLogger | None = None,
    ) -> None:
        self._store = store
        self._workflow = workflow
        self._current_user = current_acting_user_id
        self._event_logger = event_logger

    def _acting_user(self, user_id: str | None) -> str:
        return user_id or self._current_user()

    async def create_campaign(self, campaign: Campaign) -> CampaignWithApproval:
        """新しいキャンペーンを draft として登録する。"""
        record = self._workflow.initialize_campaign(campaign)
        await self._store.save_campaign(record)
        return record

    async def get_campaign(self, campaign_id: str) -> CampaignWithApproval:
        return await self._store.load_campaign(campaign_id)

    async def validate_for_approval(self, campaign_id: str) -> ApprovalValidation:
        record = await self._store.load_campaign(campaign_id)
        return self._workflow.validate_for_approval(record)

    async def approve(
        self,
        campaign_id: str,
        *,
        user_id: str | None = None,
        push_live: bool = False,
        notes: str | None = None,
    ) -> CampaignWithApproval:
        """承認前バリデーションを通過したキャンペーンを承認する。

        Raises:
            CampaignNotFoundError: キャンペーンが存在しない場合。
            CampaignNotApprovableError: 承認前バリデーションでエラーがある場合。
            IllegalTransitionError: 現在のステータスから承認できない場合。
            ConcurrencyConflictError: 読み込み後に別の更新が保存された場合。
        """
        record = await self._store.load_campaign(campaign_id)
        validation = self._workflow.validate_for_approval(record)
        if not validation.is_valid:
            logger.info("Approval refused for campaign %s: %s", campaign_id, "; ".join(validation.errors))
            raise CampaignNotApprovableError(campaign_id, list(validation.errors))
        updated = self._workflow.approve_campaign(
            record, self._acting_user(user_id), push_live=push_live, notes=notes
        )
        return await self._commit(record, updated)

    async def reject(self, campaign_id: str, reason: str, *, user_id: str | None = None) -> CampaignWithApproval:
        """キャンペーンを却下する。"""
        record = await self._store.load_campaign(campaign_id)
        updated = self._workflow.reject_campaign(record, self._acting_user(user_id), reason)
        return await self._commit(record, updated)

    async def request_changes(
        self, campaign_id: str, changes: str, *, user_id: str | None = None
    ) -> CampaignWithApproval:
        """キャンペーンの修正を依頼する。"""
        record = await self._store.load_campaign(campaign_id)
        updated = self._workflow.request_changes(record, self._acting_user(user_id), changes)
        return await self._commit(record, updated)

    async def revise(
        self,
        campaign_id: str,
        revisions: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
    ) -> CampaignWithApproval:
        """キャンペーンを修正して再レビュー待ちにする。"""
        record = await self._store.load_campaign(campaign_id)
        updated = self._workflow.revise_campaign(record, self._acting_user(user_id), revisions)
        return await self._commit(record, updated)

    async def list_campaign_ids(self) -> list[str]:
        return await self._store.list_campaign_ids()

    async def get_status(self, campaign_id: str) -> WorkflowStatus:
        record = await self._store.load_campaign(campaign_id)
        return self._workflow.get_workflow_status(record)

    async def metrics(self) -> ApprovalMetrics:
        """保存済みの全キャンペーンの承認メトリクスを返す。"""
        return self._workflow.get_approval_metrics(await self._store.list_campaigns())

    async def _commit(self, previous: CampaignWithApproval, updated: CampaignWithApproval) -> CampaignWithApproval:
        await self._store.save_campaign(updated, expected_last_modified=previous.approval.last_modified)
        action: CampaignApprovalAction = updated.approval.history[-1]
        emit_compliance_event(
            self._event_logger,
            APPROVAL_ACTION_EVENT,
            action.model_dump(mode="json") | {"status": updated.approval.status.value},
        )
        return updated
