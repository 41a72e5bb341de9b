"""コンテンツスキャン関連のデータモデル。"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ViolationSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplianceViolation(BaseModel):
    """禁止表現の検出結果（公開をブロックする）。"""

    model_config = ConfigDict(frozen=True)

    category: str
    phrase: str
    reason: str
    severity: ViolationSeverity
    replacement: str | None = None


class ComplianceWarning(BaseModel):
    """注意表現の検出結果（公開はブロックしない）。"""

    model_config = ConfigDict(frozen=True)

    category: str
    phrase: str
    concern: str
    recommendation: str


class ComplianceResult(BaseModel):
    """テキスト1件のスキャン結果。"""

    model_config = ConfigDict(frozen=True)

    approved: bool
    violations: tuple[ComplianceViolation, ...] = ()
    warnings: tuple[ComplianceWarning, ...] = ()
    suggestions: tuple[str, ...] = ()


class BannedPhraseCategory(BaseModel):
    """禁止表現カテゴリ定義（YAMLから読み込み）。"""

    model_config = ConfigDict(frozen=True)

    name: str
    severity: ViolationSeverity
    reason: str
    phrases: tuple[str, ...]
    replacements: dict[str, str] = Field(default_factory=dict)


class WarnedPhrase(BaseModel):
    model_config = ConfigDict(frozen=True)

    phrase: str
    concern: str | None = None
    recommendation: str | None = None


class WarnedPhraseCategory(BaseModel):
    """注意表現カテゴリ定義（YAMLから読み込み）。"""

    model_config = ConfigDict(frozen=True)

    name: str
    phrases: tuple[WarnedPhrase, ...]


class ContentCatalogue(BaseModel):
    """禁止表現・注意表現カタログ全体。"""

    model_config = ConfigDict(frozen=True)

    banned: tuple[BannedPhraseCategory, ...]
    warned: tuple[WarnedPhraseCategory, ...] = ()


class ComplianceReport(BaseModel):
    """法的証跡として保存するスキャンレポート。"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    content_scanned: str
    user_certifications: dict[str, Any]
    scan_result: ComplianceResult
    compliance_version: str = "1.0"
    scan_engine: str = "TradeGuard Content Safety Filter"
    regulatory_framework: str = "UK Trading Standards & Consumer Protection"
    evidence_generated: bool = True


class ContentGateResult(BaseModel):
    """公開可否判定の結果。スキャン障害時のfail-openもここに記録する。"""

    model_config = ConfigDict(frozen=True)

    result: ComplianceResult
    blocking_violations: tuple[ComplianceViolation, ...] = ()
    can_publish: bool
    scan_error: str | None = None
