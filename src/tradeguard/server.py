"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from tradeguard.catalogue import load_catalogues
from tradeguard.config import ServerConfig
from tradeguard.events.logger import JsonlComplianceEventLogger
from tradeguard.resources.catalogue import register_catalogue_resources
from tradeguard.services.campaign import CampaignService
from tradeguard.services.compliance import ComplianceService
from tradeguard.storage.service import CampaignStore
from tradeguard.tools.campaign import register_campaign_tools
from tradeguard.tools.compliance import register_compliance_tools
from tradeguard.workflow.approval import CampaignApprovalWorkflow


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """TradeGuard MCPサーバーを作成し、ツール・リソースを登録する。

    カタログはここで一度だけ読み込み、各サービスで共有する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("tradeguard")

    catalogues = load_catalogues(config.config_dir)

    # データアクセス層
    store = CampaignStore(data_dir=config.data_dir)
    event_logger = JsonlComplianceEventLogger(data_dir=config.data_dir)

    # サービス層
    compliance_service = ComplianceService(
        catalogues,
        event_logger,
        fail_open_on_scan_error=config.fail_open_on_scan_error,
    )
    campaign_service = CampaignService(
        store=store,
        workflow=CampaignApprovalWorkflow(),
        current_acting_user_id=lambda: config.default_user_id,
        event_logger=event_logger,
    )

    # MCPインターフェース登録
    register_compliance_tools(mcp, compliance_service, default_user_id=config.default_user_id)
    register_campaign_tools(mcp, campaign_service)
    register_catalogue_resources(mcp, config.config_dir)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "catalogue": compliance_service.catalogue_overview()})

    return mcp
