"""キャンペーン承認ワークフロー関連のデータモデル。"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradeguard.models.rules import TradeType


class ApprovalStatus(StrEnum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PENDING_CHANGES = "pending_changes"
    APPROVED = "approved"
    REJECTED = "rejected"
    LIVE = "live"


class ApprovalActionType(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"
    REVISE = "revise"


class ComplianceLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AdGroupCopy(BaseModel):
    model_config = ConfigDict(frozen=True)

    headlines: tuple[str, ...] = ()
    descriptions: tuple[str, ...] = ()
    final_url: str | None = None


class AdGroup(BaseModel):
    """広告グループ。"""

    model_config = ConfigDict(frozen=True)

    name: str
    keywords: tuple[str, ...] = ()
    ad_copy: AdGroupCopy | None = None


class ComplianceAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: ComplianceLevel = ComplianceLevel.MEDIUM
    notes: tuple[str, ...] = ()


class Campaign(BaseModel):
    """審査対象のキャンペーン。budget は月額、daily_budget は日額（GBP）。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    trade_type: TradeType = TradeType.PLUMBING
    business_name: str | None = None
    target_location: str | None = None
    budget: float | None = None
    daily_budget: float | None = None
    ad_groups: tuple[AdGroup, ...] = ()
    compliance: ComplianceAssessment = Field(default_factory=ComplianceAssessment)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """タイムゾーンなしの日時は UTC とみなす。"""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class CampaignApprovalAction(BaseModel):
    """監査証跡の1エントリ。追記のみで編集・削除しない。"""

    model_config = ConfigDict(frozen=True)

    id: str
    campaign_id: str
    action: ApprovalActionType
    user_id: str
    timestamp: datetime
    reason: str | None = None
    changes: str | None = None
    metadata: dict[str, Any] | None = None


class CampaignApprovalStatus(BaseModel):
    """承認ステータスと操作履歴。"""

    model_config = ConfigDict(frozen=True)

    status: ApprovalStatus = ApprovalStatus.DRAFT
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    changes_requested: str | None = None
    revision_count: int = 0
    last_modified: datetime = Field(default_factory=lambda: datetime.now(UTC))
    history: tuple[CampaignApprovalAction, ...] = ()


class CampaignWithApproval(BaseModel):
    """ワークフローの更新単位。"""

    model_config = ConfigDict(frozen=True)

    campaign: Campaign
    approval: CampaignApprovalStatus = Field(default_factory=CampaignApprovalStatus)

    @property
    def id(self) -> str:
        return self.campaign.id


class LastAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: ApprovalActionType
    timestamp: datetime
    user: str


class WorkflowStatus(BaseModel):
    """表示用のワークフロー状態。"""

    model_config = ConfigDict(frozen=True)

    current_status: ApprovalStatus
    can_approve: bool
    can_reject: bool
    can_request_changes: bool
    can_revise: bool
    revision_count: int
    last_action: LastAction | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    changes_requested: str | None = None


class ApprovalValidation(BaseModel):
    """承認前チェックの結果。"""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


class RejectionReasonCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str
    count: int


class ApprovalMetrics(BaseModel):
    """キャンペーン集合に対する承認メトリクス。"""

    model_config = ConfigDict(frozen=True)

    total: int
    approved: int
    rejected: int
    pending: int
    approval_rate: float
    rejection_rate: float
    pending_rate: float
    average_approval_hours: float | None
    revision_rate: float
    top_rejection_reasons: tuple[RejectionReasonCount, ...] = ()
