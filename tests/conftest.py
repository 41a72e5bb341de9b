"""テスト共通フィクスチャ。"""

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.factories import RecordingEventLogger, StepClock, make_campaign, make_certifications
from tradeguard.catalogue import Catalogues, load_catalogues
from tradeguard.config import ServerConfig
from tradeguard.engines.certification import CertificationRequirementEngine
from tradeguard.models.campaign import Campaign
from tradeguard.models.certification import UserCertifications
from tradeguard.scanners.content import ContentComplianceScanner
from tradeguard.services.campaign import CampaignService
from tradeguard.services.compliance import ComplianceService
from tradeguard.storage.service import CampaignStore
from tradeguard.validators.rules import ComplianceRuleValidator
from tradeguard.workflow.approval import CampaignApprovalWorkflow


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """テスト用の一時データディレクトリ。"""
    return tmp_path / "tradeguard-test"


@pytest.fixture(scope="session")
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture(scope="session")
def catalogues(config_dir: Path) -> Catalogues:
    """リポジトリ同梱のカタログ。"""
    return load_catalogues(config_dir)


@pytest.fixture
def scanner(catalogues: Catalogues) -> ContentComplianceScanner:
    return ContentComplianceScanner(catalogues.content)


@pytest.fixture
def engine(catalogues: Catalogues) -> CertificationRequirementEngine:
    return CertificationRequirementEngine(catalogues.service_requirements)


@pytest.fixture
def validator(catalogues: Catalogues) -> ComplianceRuleValidator:
    return ComplianceRuleValidator(catalogues.compliance_rules)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def workflow(clock: StepClock) -> CampaignApprovalWorkflow:
    return CampaignApprovalWorkflow(clock=clock)


@pytest.fixture
def event_logger() -> RecordingEventLogger:
    return RecordingEventLogger()


@pytest.fixture
def store(tmp_data_dir: Path) -> CampaignStore:
    """テスト用CampaignStore。"""
    return CampaignStore(data_dir=tmp_data_dir)


@pytest.fixture
def compliance_service(catalogues: Catalogues, event_logger: RecordingEventLogger) -> ComplianceService:
    return ComplianceService(catalogues, event_logger)


@pytest.fixture
def campaign_service(
    store: CampaignStore,
    workflow: CampaignApprovalWorkflow,
    event_logger: RecordingEventLogger,
) -> CampaignService:
    return CampaignService(
        store=store,
        workflow=workflow,
        current_acting_user_id=lambda: "reviewer-1",
        event_logger=event_logger,
    )


@pytest.fixture
def server_config(tmp_data_dir: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(data_dir=tmp_data_dir, config_dir=config_dir)


@pytest.fixture
def certifications_factory() -> Callable[..., UserCertifications]:
    return make_certifications


@pytest.fixture
def fully_certified() -> UserCertifications:
    return make_certifications(
        gasSafe="verified",
        partP="verified",
        insurance="verified",
        businessRegistration="verified",
    )


@pytest.fixture
def campaign_factory() -> Callable[..., Campaign]:
    return make_campaign
