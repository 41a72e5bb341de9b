"""コンプライアンス判定ツールのMCPプロトコル経由統合テスト。"""

import json

import pytest
from fastmcp import Client, FastMCP

from tradeguard.config import ServerConfig
from tradeguard.events.logger import JsonlComplianceEventLogger
from tradeguard.server import create_server


@pytest.fixture
def mcp_server(server_config: ServerConfig) -> FastMCP:
    """テスト用MCPサーバー。"""
    return create_server(server_config)


def parse_tool_result(result: object) -> dict:
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


VERIFIED = {
    "gasSafe": {"status": "verified", "number": "123456"},
    "partP": {"status": "verified"},
    "insurance": {"status": "verified", "provider": "AXA", "coverage": 2000000},
    "businessRegistration": {"status": "verified", "company_name": "QuickFix Ltd"},
}


class TestComplianceToolsRegistration:
    async def test_tools_are_registered(self, mcp_server: FastMCP) -> None:
        """コンプライアンス系ツールがMCPサーバーに登録されている。"""
        async with Client(mcp_server) as client:
            tool_names = {t.name for t in await client.list_tools()}
            assert {
                "scan_content",
                "apply_safe_replacements",
                "check_service_eligibility",
                "check_content_certifications",
                "validate_campaign_rules",
                "generate_compliance_report",
            } <= tool_names

    async def test_catalogue_resources_are_registered(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            uris = {str(r.uri) for r in await client.list_resources()}
            assert "tradeguard://catalogue/content-filters" in uris
            assert "tradeguard://catalogue/service-requirements" in uris
            assert "tradeguard://catalogue/compliance-rules" in uris

            contents = await client.read_resource("tradeguard://catalogue/service-requirements")
            assert "boiler_repair" in contents[0].text  # type: ignore[union-attr]


class TestScanContentViaMCP:
    async def test_violating_copy_is_blocked_and_logged(
        self, mcp_server: FastMCP, server_config: ServerConfig
    ) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool("scan_content", {"text": "Gas Safe certified engineer available 24/7"})
            )

        assert data["can_publish"] is False
        phrases = {v["phrase"] for v in data["blocking_violations"]}
        assert {"gas safe certified", "24/7"} <= phrases

        events = JsonlComplianceEventLogger(server_config.data_dir).read_events()
        assert {e["event_type"] for e in events} == {"violation_detected"}
        assert all(e["event_data"]["user_id"] == "system" for e in events)

    async def test_replace_then_rescan_is_publishable(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            replaced = parse_tool_result(
                await client.call_tool("apply_safe_replacements", {"text": "Gas repairs, lowest prices, 24/7"})
            )
            assert replaced["changed"] is True

            rescanned = parse_tool_result(await client.call_tool("scan_content", {"text": replaced["text"]}))
            assert rescanned["can_publish"] is True

    async def test_clean_copy(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool("scan_content", {"text": "Friendly local plumber", "user_id": "user-9"})
            )
        assert data["can_publish"] is True
        assert data["result"]["approved"] is True


class TestServiceEligibilityViaMCP:
    async def test_blocked_services(self, mcp_server: FastMCP, server_config: ServerConfig) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool(
                    "check_service_eligibility",
                    {
                        "services": ["boiler_repair", "emergency_repairs"],
                        "certifications": {"insurance": {"status": "verified"}},
                        "user_id": "user-3",
                    },
                )
            )

        assert data["can_advertise"] is False
        assert data["blocked_services"] == ["Boiler repair and maintenance", "Emergency plumbing repairs (non-gas)"]
        assert "BLOCKED SERVICES" in data["summary"]
        assert data["needs_upload"] == ["gasSafe", "partP", "businessRegistration"]

        events = JsonlComplianceEventLogger(server_config.data_dir).read_events()
        assert [e["event_type"] for e in events] == ["certification_violation"] * 2

    async def test_invalid_certifications(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool(
                    "check_service_eligibility",
                    {"services": ["boiler_repair"], "certifications": {"gasSafe": {"status": "lapsed"}}},
                )
            )
        assert data["error"] == "InvalidInput"

    async def test_unrecognised_certification_kind(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool(
                    "check_service_eligibility",
                    {
                        "services": ["electrical_rewiring"],
                        "certifications": {"electricalCert": {"status": "verified"}},
                    },
                )
            )
        assert data["error"] == "InvalidInput"
        assert "electricalCert" in data["message"]

    async def test_content_certifications(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool(
                    "check_content_certifications",
                    {"text": "Boiler servicing", "certifications": {"insurance": {"status": "verified"}}},
                )
            )
        assert [v["category"] for v in data["violations"]] == ["missing_gas_safe"]


class TestRulesAndReportViaMCP:
    async def test_validate_campaign_rules(self, mcp_server: FastMCP) -> None:
        campaign = {
            "trade_type": "plumbing",
            "service_area": {"city": "London", "postcode": "SW1A", "radius": 15},
            "service_offerings": ["boiler repair"],
            "ad_copy": {"headlines": ["Cheapest boiler repairs"], "descriptions": []},
            "keywords": [],
        }
        async with Client(mcp_server) as client:
            data = parse_tool_result(await client.call_tool("validate_campaign_rules", {"campaign": campaign}))

        assert data["summary"]["overall"] == "needs-attention"
        failed = {c["rule"]["id"] for c in data["checks"] if not c["passed"]}
        assert {"gas-safe-registration", "no-misleading-claims"} <= failed

    async def test_generate_compliance_report(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            data = parse_tool_result(
                await client.call_tool(
                    "generate_compliance_report", {"text": "Risk-free rewiring", "certifications": VERIFIED}
                )
            )
        assert data["compliance_version"] == "1.0"
        assert data["scan_result"]["approved"] is False
        assert data["user_certifications"]["insurance"]["provider"] == "AXA"
