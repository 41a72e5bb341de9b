"""広告テキストの禁止表現・注意表現スキャン。"""

import logging
import re

from tradeguard.models.certification import UserCertifications
from tradeguard.models.content import (
    ComplianceReport,
    ComplianceResult,
    ComplianceViolation,
    ComplianceWarning,
    ContentCatalogue,
    ViolationSeverity,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONCERN = "Verify this claim is accurate"
_DEFAULT_RECOMMENDATION = "Provide evidence or specifics"

_GAS_KEYWORDS: tuple[str, ...] = ("gas", "boiler", "heating", "carbon monoxide")
_ELECTRICAL_KEYWORDS: tuple[str, ...] = ("electrical", "wiring", "socket", "switch", "fuse")


class ContentComplianceScanner:
    """禁止表現カタログに基づいて広告テキストを検査する。

    状態を持たず、カタログは構築時に受け取った読み取り専用のものを使う。
    """

    def __init__(self, catalogue: ContentCatalogue) -> None:
        self._catalogue = catalogue
        self._replacements: dict[str, str] = {
            phrase: replacement
            for category in catalogue.banned
            for phrase, replacement in category.replacements.items()
        }
        # 長いフレーズを優先してマッチさせる（"24/7 service" を "24/7" より先に）
        alternatives = sorted(self._replacements, key=len, reverse=True)
        self._replacement_pattern: re.Pattern[str] | None = (
            re.compile("|".join(re.escape(p) for p in alternatives), re.IGNORECASE) if alternatives else None
        )

    @property
    def catalogue(self) -> ContentCatalogue:
        return self._catalogue

    def scan(self, text: str) -> ComplianceResult:
        """テキストをスキャンし、違反・警告・置換提案を返す。

        Args:
            text: 検査対象のテキスト。

        Returns:
            スキャン結果。違反が1件もなければ approved=True。警告は承認可否に影響しない。
        """
        lowered = text.lower()
        violations: list[ComplianceViolation] = []
        warnings: list[ComplianceWarning] = []
        suggestions: list[str] = []

        if not lowered.strip():
            return ComplianceResult(approved=True)

        for category in self._catalogue.banned:
            for phrase in category.phrases:
                if phrase not in lowered:
                    continue
                replacement = category.replacements.get(phrase)
                violations.append(
                    ComplianceViolation(
                        category=category.name,
                        phrase=phrase,
                        reason=category.reason,
                        severity=category.severity,
                        replacement=replacement,
                    )
                )
                if replacement:
                    suggestions.append(f'Replace "{phrase}" with "{replacement}"')

        for warned_category in self._catalogue.warned:
            for entry in warned_category.phrases:
                if entry.phrase.lower() not in lowered:
                    continue
                warnings.append(
                    ComplianceWarning(
                        category=warned_category.name,
                        phrase=entry.phrase,
                        concern=entry.concern or _DEFAULT_CONCERN,
                        recommendation=entry.recommendation or _DEFAULT_RECOMMENDATION,
                    )
                )

        return ComplianceResult(
            approved=not violations,
            violations=tuple(violations),
            warnings=tuple(warnings),
            suggestions=tuple(suggestions),
        )

    def apply_safe_replacements(self, text: str) -> str:
        """置換定義のある禁止表現をすべて安全な表現に置き換える。

        大文字小文字を区別せず、フレーズはリテラルとして扱う。置換後の文字列の境界で
        新たな禁止表現が生じる場合に備え、変化がなくなるまで繰り返す。
        """
        if self._replacement_pattern is None:
            return text

        pattern = self._replacement_pattern
        current = text
        for _ in range(len(self._replacements) + 1):
            replaced = pattern.sub(lambda m: self._replacements[m.group(0).lower()], current)
            if replaced == current:
                return replaced
            current = replaced

        logger.warning("Safe replacements did not converge for text of length %d", len(text))
        return current

    def validate_certification_requirements(
        self,
        text: str,
        certifications: UserCertifications,
    ) -> list[ComplianceViolation]:
        """テキストの内容に対して必要な資格が揃っているかを検査する。

        ガス・電気関連の語を含むのに該当資格がない場合に違反とする。
        賠償責任保険は本文の内容にかかわらず常に必要。
        """
        lowered = text.lower()
        violations: list[ComplianceViolation] = []

        if any(k in lowered for k in _GAS_KEYWORDS) and not certifications.gas_safe.is_held:
            violations.append(
                ComplianceViolation(
                    category="missing_gas_safe",
                    phrase="Gas-related services mentioned",
                    reason="Gas Safe registration required for gas work advertising",
                    severity=ViolationSeverity.CRITICAL,
                )
            )

        if any(k in lowered for k in _ELECTRICAL_KEYWORDS) and not certifications.part_p.is_held:
            violations.append(
                ComplianceViolation(
                    category="missing_part_p",
                    phrase="Electrical services mentioned",
                    reason="Part P certification required for electrical work advertising",
                    severity=ViolationSeverity.CRITICAL,
                )
            )

        if not certifications.insurance.is_held:
            violations.append(
                ComplianceViolation(
                    category="missing_insurance",
                    phrase="Service advertising without insurance verification",
                    reason="Public liability insurance required for trade service advertising",
                    severity=ViolationSeverity.HIGH,
                )
            )

        return violations

    @staticmethod
    def generate_compliance_report(
        text: str,
        certifications: UserCertifications,
        result: ComplianceResult,
    ) -> ComplianceReport:
        """スキャン結果を法的証跡用のレポートにまとめる。"""
        return ComplianceReport(
            content_scanned=text,
            user_certifications=certifications.model_dump(mode="json", by_alias=True),
            scan_result=result,
        )
