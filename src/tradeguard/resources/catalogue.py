"""ルールカタログのMCPリソース定義。"""

from pathlib import Path

import yaml
from fastmcp import FastMCP

from tradeguard.catalogue import COMPLIANCE_RULES_FILE, CONTENT_FILTERS_FILE, SERVICE_REQUIREMENTS_FILE


def register_catalogue_resources(mcp: FastMCP, config_dir: Path) -> None:
    """カタログ関連のMCPリソースを登録する。"""

    def _dump(file_name: str) -> str:
        with open(config_dir / file_name, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)

    @mcp.resource("tradeguard://catalogue/content-filters")
    async def content_filters() -> str:
        """禁止表現・注意表現カタログを取得する。

        広告コピー生成時に避けるべき表現と、その安全な置換表現を返します。
        """
        return _dump(CONTENT_FILTERS_FILE)

    @mcp.resource("tradeguard://catalogue/service-requirements")
    async def service_requirements() -> str:
        """サービスごとの必要資格カタログを取得する。

        check_service_eligibility に渡すサービスIDの一覧はここで確認してください。
        """
        return _dump(SERVICE_REQUIREMENTS_FILE)

    @mcp.resource("tradeguard://catalogue/compliance-rules")
    async def compliance_rules() -> str:
        """英国の規制ルールカタログを取得する。"""
        return _dump(COMPLIANCE_RULES_FILE)
