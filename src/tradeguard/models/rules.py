"""規制ルールカタログ・キャンペーンデータ関連のデータモデル。"""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RuleSeverity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class RuleCategory(StrEnum):
    LEGAL = "legal"
    SAFETY = "safety"
    ADVERTISING = "advertising"
    LOCATION = "location"


class TradeType(StrEnum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    BOTH = "both"


class ComplianceRule(BaseModel):
    """規制ルール定義（YAMLから読み込み）。"""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    severity: RuleSeverity
    category: RuleCategory
    trade_types: frozenset[TradeType]


class ServiceArea(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    postcode: str | None = None
    radius: float = 0


class AdCopy(BaseModel):
    model_config = ConfigDict(frozen=True)

    headlines: tuple[str, ...] = ()
    descriptions: tuple[str, ...] = ()


class CampaignData(BaseModel):
    """ルールバリデーション対象のキャンペーン構造化データ。"""

    model_config = ConfigDict(frozen=True)

    trade_type: TradeType
    service_area: ServiceArea
    service_offerings: tuple[str, ...] = ()
    ad_copy: AdCopy = Field(default_factory=AdCopy)
    keywords: tuple[str, ...] = ()


class ComplianceCheck(BaseModel):
    """ルール1件の判定結果。"""

    model_config = ConfigDict(frozen=True)

    rule: ComplianceRule
    passed: bool
    message: str
    suggestions: tuple[str, ...] | None = None


class ComplianceSummary(BaseModel):
    """判定結果の集計。"""

    model_config = ConfigDict(frozen=True)

    overall: Literal["excellent", "good", "needs-attention"]
    errors: int
    warnings: int
    info: int
    total: int
    passed: int
