"""資格・サービス要件関連のデータモデル。"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class CertificationKind(StrEnum):
    GAS_SAFE = "gasSafe"
    PART_P = "partP"
    INSURANCE = "insurance"
    BUSINESS_REGISTRATION = "businessRegistration"


class CertificationStatus(StrEnum):
    VERIFIED = "verified"
    PENDING = "pending"
    REJECTED = "rejected"
    EXPIRED = "expired"
    MISSING = "missing"


# 広告をブロックするステータス
BLOCKING_STATUSES: frozenset[CertificationStatus] = frozenset(
    {CertificationStatus.MISSING, CertificationStatus.REJECTED, CertificationStatus.EXPIRED}
)


class CertificationRecord(BaseModel):
    """資格1種別の登録状況。ステータスが広告可否の唯一の判断材料。"""

    model_config = ConfigDict(frozen=True)

    status: CertificationStatus = CertificationStatus.MISSING
    number: str | None = None
    provider: str | None = None
    company_name: str | None = None
    company_number: str | None = None
    coverage: int | None = None
    expiry_date: str | None = None
    verified_at: datetime | None = None

    @property
    def is_held(self) -> bool:
        """検証済みまたは審査中であれば保有扱いとする。"""
        return self.status not in BLOCKING_STATUSES

    @property
    def needs_upload(self) -> bool:
        """再提出が必要か。rejected と expired は同じ扱い。"""
        return self.status in BLOCKING_STATUSES


class UserCertifications(BaseModel):
    """事業者の資格登録状況。未登録の種別は status=missing。"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    gas_safe: CertificationRecord = Field(default_factory=CertificationRecord, alias="gasSafe")
    part_p: CertificationRecord = Field(default_factory=CertificationRecord, alias="partP")
    insurance: CertificationRecord = Field(default_factory=CertificationRecord)
    business_registration: CertificationRecord = Field(
        default_factory=CertificationRecord, alias="businessRegistration"
    )

    def record_for(self, kind: CertificationKind) -> CertificationRecord:
        """資格種別に対応するレコードを返す。"""
        return getattr(self, _FIELD_BY_KIND[kind])

    def status_of(self, kind: CertificationKind) -> CertificationStatus:
        return self.record_for(kind).status


_FIELD_BY_KIND: dict[CertificationKind, str] = {
    CertificationKind.GAS_SAFE: "gas_safe",
    CertificationKind.PART_P: "part_p",
    CertificationKind.INSURANCE: "insurance",
    CertificationKind.BUSINESS_REGISTRATION: "business_registration",
}


class ServiceRequirement(BaseModel):
    """広告対象サービスと必要資格の対応（YAMLから読み込み）。"""

    model_config = ConfigDict(frozen=True)

    service: str
    required_certifications: tuple[CertificationKind, ...]
    description: str
    legal_risk: str
    fine_amount: str | None = None


class CertificationCheckResult(BaseModel):
    """サービス広告可否の判定結果。"""

    model_config = ConfigDict(frozen=True)

    can_advertise: bool
    missing_certifications: tuple[str, ...] = ()
    blocked_services: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    legal_risks: tuple[str, ...] = ()
