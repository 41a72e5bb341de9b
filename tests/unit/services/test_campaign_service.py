"""CampaignServiceのユニットテスト。"""

import pytest

from tests.factories import RecordingEventLogger, make_campaign
from tradeguard.models.campaign import ApprovalStatus, ComplianceAssessment, ComplianceLevel
from tradeguard.models.errors import (
    CampaignNotApprovableError,
    CampaignNotFoundError,
    ConcurrencyConflictError,
    IllegalTransitionError,
)
from tradeguard.services.campaign import APPROVAL_ACTION_EVENT, CampaignService
from tradeguard.storage.service import CampaignStore


class TestCampaignService:
    async def test_create_and_get(self, campaign_service: CampaignService) -> None:
        created = await campaign_service.create_campaign(make_campaign())
        assert created.approval.status == ApprovalStatus.DRAFT

        loaded = await campaign_service.get_campaign("campaign-1")
        assert loaded == created

    async def test_create_duplicate_id(self, campaign_service: CampaignService) -> None:
        await campaign_service.create_campaign(make_campaign())
        with pytest.raises(ConcurrencyConflictError):
            await campaign_service.create_campaign(make_campaign())

    async def test_approve_uses_acting_user_and_emits_event(
        self, campaign_service: CampaignService, event_logger: RecordingEventLogger
    ) -> None:
        await campaign_service.create_campaign(make_campaign())
        approved = await campaign_service.approve("campaign-1", notes="All checks passed")

        assert approved.approval.status == ApprovalStatus.APPROVED
        assert approved.approval.approved_by == "reviewer-1"

        events = event_logger.of_type(APPROVAL_ACTION_EVENT)
        assert len(events) == 1
        assert events[0]["action"] == "approve"
        assert events[0]["status"] == "approved"
        assert events[0]["metadata"] == {"push_live": False, "notes": "All checks passed"}

    async def test_explicit_user_overrides_acting_user(self, campaign_service: CampaignService) -> None:
        await campaign_service.create_campaign(make_campaign())
        rejected = await campaign_service.reject("campaign-1", "Unverified claims", user_id="lead-2")
        assert rejected.approval.rejected_by == "lead-2"

    async def test_approve_refused_when_validation_fails(
        self,
        campaign_service: CampaignService,
        event_logger: RecordingEventLogger,
    ) -> None:
        await campaign_service.create_campaign(
            make_campaign(ad_groups=(), compliance=ComplianceAssessment(level=ComplianceLevel.LOW))
        )

        with pytest.raises(CampaignNotApprovableError) as exc_info:
            await campaign_service.approve("campaign-1")

        assert "Campaign must have at least one ad group" in exc_info.value.errors
        assert "Campaign has compliance issues that must be resolved" in exc_info.value.errors
        stored = await campaign_service.get_campaign("campaign-1")
        assert stored.approval.status == ApprovalStatus.DRAFT
        assert event_logger.events == []

    async def test_full_review_cycle_is_persisted(self, campaign_service: CampaignService) -> None:
        await campaign_service.create_campaign(make_campaign())
        await campaign_service.request_changes("campaign-1", "Add Gas Safe number")
        await campaign_service.revise("campaign-1", {"name": "Gas Safe Plumbing London"}, user_id="owner-1")
        await campaign_service.approve("campaign-1", push_live=True)

        status = await campaign_service.get_status("campaign-1")
        assert status.current_status == ApprovalStatus.LIVE
        assert status.revision_count == 1
        record = await campaign_service.get_campaign("campaign-1")
        assert record.campaign.name == "Gas Safe Plumbing London"
        assert [a.action.value for a in record.approval.history] == ["request_changes", "revise", "approve"]

    async def test_illegal_transition_is_not_persisted(
        self, campaign_service: CampaignService, event_logger: RecordingEventLogger
    ) -> None:
        await campaign_service.create_campaign(make_campaign())
        await campaign_service.reject("campaign-1", "No")

        with pytest.raises(IllegalTransitionError):
            await campaign_service.revise("campaign-1", {"name": "Try again"})

        record = await campaign_service.get_campaign("campaign-1")
        assert record.approval.status == ApprovalStatus.REJECTED
        assert len(event_logger.of_type(APPROVAL_ACTION_EVENT)) == 1

    async def test_concurrent_decisions_only_first_wins(
        self, campaign_service: CampaignService, store: CampaignStore
    ) -> None:
        await campaign_service.create_campaign(make_campaign())
        stale = await store.load_campaign("campaign-1")

        await campaign_service.approve("campaign-1")

        # 承認前に読み込んだレコードを元にした更新は拒否される
        workflow_result = stale.model_copy(
            update={"approval": stale.approval.model_copy(update={"status": ApprovalStatus.REJECTED})}
        )
        with pytest.raises(ConcurrencyConflictError):
            await store.save_campaign(workflow_result, expected_last_modified=stale.approval.last_modified)

    async def test_unknown_campaign(self, campaign_service: CampaignService) -> None:
        with pytest.raises(CampaignNotFoundError):
            await campaign_service.approve("missing")

    async def test_list_campaign_ids(self, campaign_service: CampaignService) -> None:
        assert await campaign_service.list_campaign_ids() == []

        for campaign_id in ("zone-2", "zone-1"):
            await campaign_service.create_campaign(make_campaign(id=campaign_id))

        assert await campaign_service.list_campaign_ids() == ["zone-1", "zone-2"]

    async def test_metrics_over_stored_campaigns(self, campaign_service: CampaignService) -> None:
        assert (await campaign_service.metrics()).total == 0

        await campaign_service.create_campaign(make_campaign(id="a"))
        await campaign_service.create_campaign(make_campaign(id="b"))
        await campaign_service.approve("a")
        await campaign_service.reject("b", "Missing insurance")

        metrics = await campaign_service.metrics()
        assert metrics.total == 2
        assert metrics.approval_rate == pytest.approx(0.5)
        assert metrics.average_approval_hours is not None
        assert metrics.top_rejection_reasons[0].reason == "Missing insurance"

    async def test_validate_for_approval(self, campaign_service: CampaignService) -> None:
        await campaign_service.create_campaign(make_campaign(budget=20))
        validation = await campaign_service.validate_for_approval("campaign-1")
        assert validation.is_valid is True
        assert validation.warnings == ("Budget is below recommended minimum of £100",)
