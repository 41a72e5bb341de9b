"""キャンペーン承認ワークフローのMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from tradeguard.models.campaign import Campaign, CampaignWithApproval
from tradeguard.models.errors import TradeGuardError
from tradeguard.services.campaign import CampaignService


def _record_summary(record: CampaignWithApproval) -> dict[str, Any]:
    approval = record.approval
    return {
        "campaign_id": record.id,
        "name": record.campaign.name,
        "status": approval.status.value,
        "revision_count": approval.revision_count,
        "last_modified": approval.last_modified.isoformat(),
        "history_length": len(approval.history),
    }


def register_campaign_tools(mcp: FastMCP, campaign_service: CampaignService) -> None:
    """キャンペーン承認関連のMCPツールを登録する。"""

    @mcp.tool()
    async def create_campaign(campaign: dict[str, Any]) -> dict[str, Any]:
        """新しいキャンペーンを draft として登録する。

        Args:
            campaign: {"name": str, "trade_type": str, "budget": float, "daily_budget": float,
                "ad_groups": [{"name": str, "keywords": [str], "ad_copy": {"headlines": [str],
                "descriptions": [str]}}], "compliance": {"level": "high"|"medium"|"low"}} 形式。
        """
        try:
            model = Campaign.model_validate(campaign)
        except ValidationError as e:
            return {"error": "InvalidInput", "message": str(e)}
        try:
            record = await campaign_service.create_campaign(model)
            return _record_summary(record)
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def validate_for_approval(campaign_id: str) -> dict[str, Any]:
        """承認前チェックを実行する。errors が空でない場合は承認できません。

        Args:
            campaign_id: キャンペーンID。
        """
        try:
            validation = await campaign_service.validate_for_approval(campaign_id)
            return validation.model_dump(mode="json")
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def approve_campaign(
        campaign_id: str,
        push_live: bool = False,
        notes: str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """キャンペーンを承認する。

        Args:
            campaign_id: キャンペーンID。
            push_live: True の場合、承認と同時に公開済み（live）にする。
            notes: 承認メモ（操作履歴に記録）。
            user_id: 承認者ID（省略時はサーバー既定値）。
        """
        try:
            record = await campaign_service.approve(campaign_id, user_id=user_id, push_live=push_live, notes=notes)
            return _record_summary(record)
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def reject_campaign(campaign_id: str, reason: str, user_id: str | None = None) -> dict[str, Any]:
        """キャンペーンを却下する。

        Args:
            campaign_id: キャンペーンID。
            reason: 却下理由。
            user_id: 操作ユーザーID。
        """
        try:
            record = await campaign_service.reject(campaign_id, reason, user_id=user_id)
            return _record_summary(record) | {"rejection_reason": record.approval.rejection_reason}
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def request_campaign_changes(campaign_id: str, changes: str, user_id: str | None = None) -> dict[str, Any]:
        """キャンペーンの修正を依頼する。

        Args:
            campaign_id: キャンペーンID。
            changes: 修正依頼の内容。
            user_id: 操作ユーザーID。
        """
        try:
            record = await campaign_service.request_changes(campaign_id, changes, user_id=user_id)
            return _record_summary(record) | {"changes_requested": record.approval.changes_requested}
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def revise_campaign(
        campaign_id: str,
        revisions: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """キャンペーンを修正し、再レビュー待ちにする。

        Args:
            campaign_id: キャンペーンID。
            revisions: 更新するキャンペーンフィールド（例: {"ad_groups": [...]}）。
            user_id: 操作ユーザーID。
        """
        try:
            record = await campaign_service.revise(campaign_id, revisions, user_id=user_id)
            return _record_summary(record)
        except ValidationError as e:
            return {"error": "InvalidInput", "message": str(e)}
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def list_campaigns() -> dict[str, Any]:
        """保存済みのキャンペーンIDを一覧する。"""
        try:
            return {"campaign_ids": await campaign_service.list_campaign_ids()}
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_campaign_status(campaign_id: str) -> dict[str, Any]:
        """キャンペーンのワークフロー状態（実行可能な操作を含む）を取得する。

        Args:
            campaign_id: キャンペーンID。
        """
        try:
            status = await campaign_service.get_status(campaign_id)
            return status.model_dump(mode="json")
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_approval_metrics() -> dict[str, Any]:
        """保存済みキャンペーン全体の承認メトリクスを取得する。"""
        try:
            metrics = await campaign_service.metrics()
            return metrics.model_dump(mode="json")
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}
