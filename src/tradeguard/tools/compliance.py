"""コンプライアンス判定のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from tradeguard.models.certification import UserCertifications
from tradeguard.models.errors import TradeGuardError
from tradeguard.models.rules import CampaignData
from tradeguard.services.compliance import ComplianceService


def _invalid_input(e: ValidationError) -> dict[str, Any]:
    return {"error": "InvalidInput", "message": str(e)}


def register_compliance_tools(mcp: FastMCP, compliance_service: ComplianceService, *, default_user_id: str) -> None:
    """コンプライアンス関連のMCPツールを登録する。"""

    @mcp.tool()
    async def scan_content(text: str, user_id: str | None = None) -> dict[str, Any]:
        """広告テキストの禁止表現・注意表現をスキャンする。

        生成した広告コピーを公開前に必ずこのツールで検査してください。
        can_publish が false の場合は blocking_violations を修正するか、
        apply_safe_replacements で安全な表現に置き換えてください。

        Args:
            text: 検査対象のテキスト。
            user_id: 事業者ID（省略時はサーバー既定値）。
        """
        try:
            gate = compliance_service.check_content(text, user_id or default_user_id)
            return gate.model_dump(mode="json")
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def apply_safe_replacements(text: str) -> dict[str, Any]:
        """禁止表現をカタログ定義の安全な表現に置き換える。

        Args:
            text: 置換対象のテキスト。
        """
        safe_text = compliance_service.apply_safe_replacements(text)
        return {"text": safe_text, "changed": safe_text != text}

    @mcp.tool()
    async def check_service_eligibility(
        services: list[str],
        certifications: dict[str, Any],
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """事業者が指定サービスを広告できるか判定する。

        Args:
            services: サービスIDのリスト（例: ["boiler_repair", "emergency_repairs"]）。
            certifications: 資格状況。{"gasSafe": {"status": "verified"}, "partP": {...}, ...} 形式。
                省略した種別は missing として扱う。
            user_id: 事業者ID（省略時はサーバー既定値）。
        """
        try:
            certs = UserCertifications.model_validate(certifications)
        except ValidationError as e:
            return _invalid_input(e)
        try:
            result = compliance_service.check_services(user_id or default_user_id, services, certs)
            return {
                **result.model_dump(mode="json"),
                "summary": compliance_service.engine.generate_compliance_warning(result),
                "needs_upload": [k.value for k in compliance_service.engine.certifications_needing_upload(certs)],
            }
        except TradeGuardError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def check_content_certifications(text: str, certifications: dict[str, Any]) -> dict[str, Any]:
        """テキストの内容に対して必要な資格が揃っているか検査する。

        Args:
            text: 検査対象のテキスト。
            certifications: 資格状況（check_service_eligibility と同じ形式）。
        """
        try:
            certs = UserCertifications.model_validate(certifications)
        except ValidationError as e:
            return _invalid_input(e)
        violations = compliance_service.check_content_certifications(text, certs)
        return {"violations": [v.model_dump(mode="json") for v in violations]}

    @mcp.tool()
    async def validate_campaign_rules(campaign: dict[str, Any]) -> dict[str, Any]:
        """キャンペーンデータを英国の規制ルールで検証する。

        Args:
            campaign: {"trade_type": "plumbing"|"electrical"|"both",
                "service_area": {"city": str, "postcode": str, "radius": float},
                "service_offerings": [str], "ad_copy": {"headlines": [str], "descriptions": [str]},
                "keywords": [str]} 形式。
        """
        try:
            data = CampaignData.model_validate(campaign)
        except ValidationError as e:
            return _invalid_input(e)
        checks, summary = compliance_service.validate_campaign(data)
        return {
            "checks": [c.model_dump(mode="json") for c in checks],
            "summary": summary.model_dump(mode="json"),
        }

    @mcp.tool()
    async def generate_compliance_report(text: str, certifications: dict[str, Any]) -> dict[str, Any]:
        """スキャン結果を法的証跡用のレポートとして生成する。

        Args:
            text: 検査対象のテキスト。
            certifications: 資格状況。
        """
        try:
            certs = UserCertifications.model_validate(certifications)
        except ValidationError as e:
            return _invalid_input(e)
        return compliance_service.generate_report(text, certs).model_dump(mode="json")
