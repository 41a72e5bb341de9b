"""コンテンツ・資格・規制ルールの判定をまとめるサービス。"""

import logging
from collections.abc import Iterable
from typing import Any

from tradeguard.catalogue import Catalogues
from tradeguard.engines.certification import CERTIFICATION_VIOLATION_EVENT, CertificationRequirementEngine
from tradeguard.events.logger import ComplianceEventLogger, emit_compliance_event
from tradeguard.models.certification import CertificationCheckResult, UserCertifications
from tradeguard.models.content import (
    ComplianceReport,
    ComplianceResult,
    ComplianceViolation,
    ContentGateResult,
    ViolationSeverity,
)
from tradeguard.models.errors import InvalidInputError, ScanFaultError
from tradeguard.models.rules import CampaignData, ComplianceCheck, ComplianceSummary
from tradeguard.scanners.content import ContentComplianceScanner
from tradeguard.validators.rules import ComplianceRuleValidator

logger = logging.getLogger(__name__)

VIOLATION_DETECTED_EVENT = "violation_detected"
SCAN_FAULT_EVENT = "scan_fault"

_BLOCKING_SEVERITIES = frozenset({ViolationSeverity.HIGH, ViolationSeverity.CRITICAL})


class ComplianceService:
    """3つの判定器を組み合わせ、判定結果に応じたイベント記録を行う。"""

    def __init__(
        self,
        catalogues: Catalogues,
        event_logger: ComplianceEventLogger | None = None,
        *,
        fail_open_on_scan_error: bool = True,
    ) -> None:
        self._scanner = ContentComplianceScanner(catalogues.content)
        self._engine = CertificationRequirementEngine(catalogues.service_requirements)
        self._validator = ComplianceRuleValidator(catalogues.compliance_rules)
        self._event_logger = event_logger
        self._fail_open = fail_open_on_scan_error

    @property
    def scanner(self) -> ContentComplianceScanner:
        return self._scanner

    @property
    def engine(self) -> CertificationRequirementEngine:
        return self._engine

    @property
    def validator(self) -> ComplianceRuleValidator:
        return self._validator

    def check_content(self, text: str, user_id: str, *, block_on_high_severity: bool = True) -> ContentGateResult:
        """広告テキストを検査し、公開可否を判定する。

        high / critical の違反は公開をブロックし、1件ごとにイベントを記録する。

        スキャナー内部で想定外の障害が発生した場合、fail_open_on_scan_error が True なら
        コンテンツを承認扱いにする（可用性を優先する既知のリスク）。障害はログに残し、
        結果の scan_error に記録する。False の場合は ScanFaultError を送出する。

        Raises:
            InvalidInputError: text が文字列でない場合。fail-open 設定でも送出する。
            ScanFaultError: fail-closed 設定でスキャナーが障害を起こした場合。
        """
        if not isinstance(text, str):
            raise InvalidInputError(f"Content must be a string, got {type(text).__name__}")
        try:
            result = self._scanner.scan(text)
        except Exception as e:
            if not self._fail_open:
                raise ScanFaultError(f"Content scan failed: {e}") from e
            # fail-open: 障害時は承認扱い
            logger.exception("Content scan failed; treating content as approved (fail-open)")
            emit_compliance_event(
                self._event_logger,
                SCAN_FAULT_EVENT,
                {"user_id": user_id, "error": repr(e), "content_excerpt": text[:100]},
            )
            return ContentGateResult(
                result=ComplianceResult(approved=True),
                can_publish=True,
                scan_error=repr(e),
            )

        blocking: tuple[ComplianceViolation, ...] = (
            tuple(v for v in result.violations if v.severity in _BLOCKING_SEVERITIES)
            if block_on_high_severity
            else ()
        )
        for violation in blocking:
            emit_compliance_event(
                self._event_logger,
                VIOLATION_DETECTED_EVENT,
                {
                    "user_id": user_id,
                    "category": violation.category,
                    "phrase": violation.phrase,
                    "severity": violation.severity.value,
                },
            )

        return ContentGateResult(
            result=result,
            blocking_violations=blocking,
            can_publish=not blocking,
        )

    def apply_safe_replacements(self, text: str) -> str:
        return self._scanner.apply_safe_replacements(text)

    def check_content_certifications(
        self, text: str, certifications: UserCertifications
    ) -> list[ComplianceViolation]:
        return self._scanner.validate_certification_requirements(text, certifications)

    def generate_report(self, text: str, certifications: UserCertifications) -> ComplianceReport:
        """テキストをスキャンし、証跡レポートを生成する。"""
        result = self._scanner.scan(text)
        return self._scanner.generate_compliance_report(text, certifications, result)

    def check_services(
        self,
        user_id: str,
        requested_services: Iterable[str],
        certifications: UserCertifications,
    ) -> CertificationCheckResult:
        """サービスの広告可否を判定し、ブロックされたサービスごとにイベントを記録する。"""
        result = self._engine.check_eligibility(requested_services, certifications)
        for event_data in self._engine.build_violation_events(user_id, result):
            emit_compliance_event(self._event_logger, CERTIFICATION_VIOLATION_EVENT, event_data)
        return result

    def validate_campaign(self, campaign: CampaignData) -> tuple[list[ComplianceCheck], ComplianceSummary]:
        """キャンペーンデータを規制ルールで検証し、集計と合わせて返す。"""
        checks = self._validator.validate(campaign)
        return checks, self._validator.summarize(checks)

    def catalogue_overview(self) -> dict[str, Any]:
        """カタログの概要（件数とID）を返す。"""
        return {
            "banned_categories": [c.name for c in self._scanner.catalogue.banned],
            "warned_categories": [c.name for c in self._scanner.catalogue.warned],
            "services": [r.service for r in self._engine.requirements],
            "rules": [r.id for r in self._validator.rules],
        }
