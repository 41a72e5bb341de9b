"""広告対象サービスに必要な資格の判定。"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from tradeguard.models.certification import (
    BLOCKING_STATUSES,
    CertificationCheckResult,
    CertificationKind,
    CertificationStatus,
    ServiceRequirement,
    UserCertifications,
)
from tradeguard.models.errors import InvalidInputError, UnknownCertificationKindError

logger = logging.getLogger(__name__)

CERTIFICATION_VIOLATION_EVENT = "certification_violation"

_DISPLAY_NAMES: dict[CertificationKind, str] = {
    CertificationKind.GAS_SAFE: "Gas Safe Registration",
    CertificationKind.PART_P: "Part P Electrical Certification",
    CertificationKind.INSURANCE: "Public Liability Insurance",
    CertificationKind.BUSINESS_REGISTRATION: "Business Registration",
}


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    """初出順を保ったまま重複を除く。"""
    return tuple(dict.fromkeys(items))


class CertificationRequirementEngine:
    """サービス要件カタログと事業者の資格状況から広告可否を判定する。

    副作用を持たない。ブロックされたサービスについてコンプライアンスイベントを
    記録する義務は呼び出し側にある（build_violation_events で記録内容を生成できる）。
    """

    def __init__(self, requirements: Iterable[ServiceRequirement]) -> None:
        self._requirements: tuple[ServiceRequirement, ...] = tuple(requirements)
        self._by_service: dict[str, ServiceRequirement] = {r.service: r for r in self._requirements}

    @property
    def requirements(self) -> tuple[ServiceRequirement, ...]:
        return self._requirements

    def check_eligibility(
        self,
        requested_services: Iterable[str],
        certifications: UserCertifications,
    ) -> CertificationCheckResult:
        """要求されたサービスを広告できるか判定する。

        Args:
            requested_services: サービスIDのリスト。
            certifications: 事業者の資格状況。

        Returns:
            判定結果。ブロックされたサービスがなければ can_advertise=True。

        Raises:
            InvalidInputError: requested_services に単一の文字列が渡された場合。
        """
        if isinstance(requested_services, str):
            raise InvalidInputError("requested_services must be a collection of service IDs, not a single string")
        missing_certifications: list[str] = []
        blocked_services: list[str] = []
        warnings: list[str] = []
        legal_risks: list[str] = []

        for service in requested_services:
            requirement = self._by_service.get(service)
            if requirement is None:
                # カタログ未登録のサービスは許可するが既知のギャップとして記録する
                logger.warning("Service not in compliance database: %s", service)
                warnings.append(f"{service}: Service not in compliance database - proceed with caution")
                continue

            missing_for_service: list[str] = []
            for kind in requirement.required_certifications:
                status = certifications.status_of(kind)
                display_name = self.get_certification_display_name(kind)
                if status in BLOCKING_STATUSES:
                    missing_for_service.append(display_name)
                elif status == CertificationStatus.PENDING:
                    warnings.append(f"{requirement.description}: {display_name} is pending verification")

            if missing_for_service:
                blocked_services.append(requirement.description)
                missing_certifications.extend(missing_for_service)
                risk = f"{requirement.description}: {requirement.legal_risk}"
                if requirement.fine_amount:
                    risk += f" ({requirement.fine_amount})"
                legal_risks.append(risk)

        blocked = _dedupe(blocked_services)
        return CertificationCheckResult(
            can_advertise=not blocked,
            missing_certifications=_dedupe(missing_certifications),
            blocked_services=blocked,
            warnings=_dedupe(warnings),
            legal_risks=_dedupe(legal_risks),
        )

    @staticmethod
    def get_certification_display_name(kind: CertificationKind | str) -> str:
        """資格種別の表示名を返す。

        Raises:
            UnknownCertificationKindError: 資格種別として解釈できない文字列の場合。
        """
        try:
            return _DISPLAY_NAMES[CertificationKind(kind)]
        except ValueError:
            raise UnknownCertificationKindError(str(kind)) from None

    def get_required_certifications_for_services(self, services: Iterable[str]) -> list[ServiceRequirement]:
        """サービス名の部分一致で関連するサービス要件を返す。"""
        services = list(services)
        return [
            requirement
            for requirement in self._requirements
            if any(s in requirement.service or requirement.service in s for s in services)
        ]

    @staticmethod
    def certifications_needing_upload(certifications: UserCertifications) -> list[CertificationKind]:
        """再提出が必要な資格種別（rejected / expired / missing）を返す。"""
        return [kind for kind in CertificationKind if certifications.record_for(kind).needs_upload]

    @staticmethod
    def generate_compliance_warning(result: CertificationCheckResult) -> str:
        """判定結果を事業者向けの警告文にまとめる。"""
        if result.can_advertise and not result.warnings:
            return "All certifications verified for requested services."

        sections: list[str] = ["COMPLIANCE WARNING:"]
        for title, items in (
            ("BLOCKED SERVICES (Missing certifications):", result.blocked_services),
            ("MISSING CERTIFICATIONS:", result.missing_certifications),
            ("LEGAL RISKS:", result.legal_risks),
            ("WARNINGS:", result.warnings),
        ):
            if items:
                sections.append(title + "\n" + "\n".join(f"- {item}" for item in items))

        sections.append(
            "REMEMBER: False advertising can result in £5,000+ fines and legal action.\n"
            "You are legally responsible for ensuring all claims are accurate and compliant."
        )
        return "\n\n".join(sections)

    @staticmethod
    def build_violation_events(user_id: str, result: CertificationCheckResult) -> list[dict[str, Any]]:
        """ブロックされたサービスごとに記録すべきイベントデータを生成する。"""
        detected_at = datetime.now(UTC).isoformat()
        missing = list(result.missing_certifications)
        return [
            {
                "user_id": user_id,
                "service": service,
                "missing_certifications": missing,
                "detected_at": detected_at,
                "severity": "high",
                "description": (
                    f"User attempted to advertise {service} without required certifications: "
                    f"{', '.join(missing)}"
                ),
            }
            for service in result.blocked_services
        ]
