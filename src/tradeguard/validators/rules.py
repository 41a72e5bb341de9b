"""規制ルールカタログに基づくキャンペーンバリデーションロジック。"""

from collections.abc import Callable, Iterable

from tradeguard.models.rules import (
    CampaignData,
    ComplianceCheck,
    ComplianceRule,
    ComplianceSummary,
    RuleSeverity,
)

_GAS_TERMS = ("gas", "boiler", "heating")
_NOTIFIABLE_ELECTRICAL_TERMS = ("rewiring", "consumer unit", "electrical installation", "fuse box")
_PART_P_TERMS = ("part p", "building regulations", "compliant", "certified")
_QUALIFICATION_TERMS = ("qualified", "certified", "city & guilds", "nvq", "qualification")
_PRICING_TERMS = ("free quote", "no call out", "transparent", "upfront", "fixed price", "no hidden")
_MISLEADING_TERMS = (
    "cheapest",
    "best in uk",
    "guaranteed lowest",
    "always available",
    "instant",
    "100% guaranteed",
)


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def _campaign_text(campaign: CampaignData) -> str:
    """広告文・サービス・キーワードを連結して小文字化する。"""
    ad_text = " ".join([*campaign.ad_copy.headlines, *campaign.ad_copy.descriptions])
    services = " ".join(campaign.service_offerings)
    keywords = " ".join(campaign.keywords)
    return f"{ad_text} {services} {keywords}".lower()


class ComplianceRuleValidator:
    """規制ルールに基づくキャンペーン検証を行う。"""

    def __init__(self, rules: Iterable[ComplianceRule]) -> None:
        self._rules: tuple[ComplianceRule, ...] = tuple(rules)
        self._checks: dict[str, Callable[[ComplianceRule, CampaignData, str], ComplianceCheck]] = {
            "gas-safe-registration": self._check_gas_safe_registration,
            "gas-safety-certificate": self._check_gas_safe_mentioned,
            "part-p-compliance": self._check_part_p_compliance,
            "electrical-qualifications": self._check_electrical_qualifications,
            "price-transparency": self._check_price_transparency,
            "no-misleading-claims": self._check_misleading_claims,
            "london-low-emission-zone": self._check_london_lez,
        }

    @property
    def rules(self) -> tuple[ComplianceRule, ...]:
        return self._rules

    def validate(self, campaign: CampaignData) -> list[ComplianceCheck]:
        """キャンペーンを規制ルールに基づいて検証する。

        Args:
            campaign: 検証対象のキャンペーンデータ。

        Returns:
            適用対象ルールごとに1件の判定結果。カタログの定義順。
        """
        all_text = _campaign_text(campaign)
        results: list[ComplianceCheck] = []

        for rule in self._rules:
            if campaign.trade_type not in rule.trade_types:
                continue
            check = self._checks.get(rule.id)
            if check is None:
                results.append(ComplianceCheck(rule=rule, passed=True, message="Compliance check passed"))
                continue
            results.append(check(rule, campaign, all_text))

        return results

    @staticmethod
    def summarize(checks: Iterable[ComplianceCheck]) -> ComplianceSummary:
        """判定結果を重要度別に集計する。"""
        checks = list(checks)
        failed = [c for c in checks if not c.passed]
        errors = sum(1 for c in failed if c.rule.severity == RuleSeverity.ERROR)
        warnings = sum(1 for c in failed if c.rule.severity == RuleSeverity.WARNING)
        info = sum(1 for c in failed if c.rule.severity == RuleSeverity.INFO)

        if errors:
            overall = "needs-attention"
        elif warnings:
            overall = "good"
        else:
            overall = "excellent"

        return ComplianceSummary(
            overall=overall,
            errors=errors,
            warnings=warnings,
            info=info,
            total=len(checks),
            passed=len(checks) - len(failed),
        )

    @staticmethod
    def _check_gas_safe_registration(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        if not _contains_any(all_text, _GAS_TERMS):
            return ComplianceCheck(
                rule=rule,
                passed=True,
                message="No gas services advertised - Gas Safe registration not required",
            )

        mentioned = _contains_any(all_text, ("gas safe", "gas-safe"))
        if mentioned:
            return ComplianceCheck(rule=rule, passed=True, message="Gas Safe registration mentioned - compliant")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message="Gas services offered but Gas Safe registration not mentioned",
            suggestions=(
                'Add "Gas Safe Registered" to your ad headlines',
                "Include Gas Safe registration number in ad description",
                'Mention "Fully qualified Gas Safe engineer" in your copy',
            ),
        )

    @staticmethod
    def _check_gas_safe_mentioned(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        if not _contains_any(all_text, _GAS_TERMS):
            return ComplianceCheck(rule=rule, passed=True, message="No gas services advertised")

        if _contains_any(all_text, ("gas safe", "registered")):
            return ComplianceCheck(rule=rule, passed=True, message="Gas Safe credentials properly mentioned")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message="Gas services offered without proper credentials mentioned",
            suggestions=(
                "Add your Gas Safe registration number",
                'Include "Gas Safe Registered Engineer" in headlines',
            ),
        )

    @staticmethod
    def _check_part_p_compliance(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        if not _contains_any(all_text, _NOTIFIABLE_ELECTRICAL_TERMS):
            return ComplianceCheck(rule=rule, passed=True, message="No notifiable electrical work advertised")

        if _contains_any(all_text, _PART_P_TERMS):
            return ComplianceCheck(rule=rule, passed=True, message="Part P compliance mentioned")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message="Notifiable electrical work offered without Part P compliance mention",
            suggestions=(
                'Add "Part P Building Regulations compliant" to your ad',
                'Mention "Certified electrical installations"',
                'Include "Building Regulations approved" in your copy',
            ),
        )

    @staticmethod
    def _check_electrical_qualifications(
        rule: ComplianceRule, campaign: CampaignData, all_text: str
    ) -> ComplianceCheck:
        if _contains_any(all_text, _QUALIFICATION_TERMS):
            return ComplianceCheck(rule=rule, passed=True, message="Electrical qualifications mentioned")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message="Consider mentioning electrical qualifications for credibility",
            suggestions=(
                'Add "Fully qualified electrician" to your headlines',
                'Mention "City & Guilds certified" in descriptions',
                'Include "NVQ Level 3 qualified" in your ad copy',
            ),
        )

    @staticmethod
    def _check_price_transparency(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        if _contains_any(all_text, _PRICING_TERMS):
            return ComplianceCheck(rule=rule, passed=True, message="Price transparency information included")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message="Consider adding pricing transparency information",
            suggestions=(
                'Add "Free, no-obligation quotes" to your ad',
                'Include "No hidden charges" in descriptions',
                'Mention "Transparent, upfront pricing"',
                'Add "No call-out fees" if applicable',
            ),
        )

    @staticmethod
    def _check_misleading_claims(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        found = [term for term in _MISLEADING_TERMS if term in all_text]
        if not found:
            return ComplianceCheck(rule=rule, passed=True, message="No potentially misleading claims detected")
        return ComplianceCheck(
            rule=rule,
            passed=False,
            message=f"Potentially misleading claims found: {', '.join(found)}",
            suggestions=(
                "Replace absolute claims with qualified statements",
                'Use "competitive pricing" instead of "cheapest"',
                'Say "reliable service" instead of "always available"',
                'Use "fast response" instead of "instant"',
            ),
        )

    @staticmethod
    def _check_london_lez(rule: ComplianceRule, campaign: CampaignData, all_text: str) -> ComplianceCheck:
        # 情報提供のみ。ロンドンでも不合格にはしない
        if "london" not in campaign.service_area.city.lower():
            return ComplianceCheck(
                rule=rule,
                passed=True,
                message="Not operating in London - LEZ requirements not applicable",
            )
        return ComplianceCheck(
            rule=rule,
            passed=True,
            message="Operating in London - ensure vehicles comply with Low Emission Zone requirements",
            suggestions=(
                "Ensure all vehicles meet ULEZ standards",
                'Consider mentioning "Eco-friendly service vehicles" in ads',
                "Check daily charge requirements for older vehicles",
            ),
        )
