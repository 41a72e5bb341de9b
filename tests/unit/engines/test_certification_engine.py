"""CertificationRequirementEngineのユニットテスト。"""

import logging

import pytest

from tradeguard.engines.certification import CertificationRequirementEngine
from tradeguard.models.certification import CertificationKind, UserCertifications
from tradeguard.models.errors import InvalidInputError, UnknownCertificationKindError


class TestCheckEligibility:
    def test_boiler_repair_blocked_without_gas_safe(self, engine: CertificationRequirementEngine, certifications_factory) -> None:
        certs = certifications_factory(gasSafe="missing", insurance="verified", businessRegistration="verified")
        result = engine.check_eligibility(["boiler_repair"], certs)

        assert result.can_advertise is False
        assert result.blocked_services == ("Boiler repair and maintenance",)
        assert "Gas Safe Registration" in result.missing_certifications
        assert result.legal_risks == (
            "Boiler repair and maintenance: Gas work without Gas Safe registration violates "
            "Gas Safety Regulations (£6,000+ fine)",
        )

    def test_fully_certified_can_advertise(
        self, engine: CertificationRequirementEngine, fully_certified: UserCertifications
    ) -> None:
        result = engine.check_eligibility(["boiler_repair", "electrical_rewiring"], fully_certified)
        assert result.can_advertise is True
        assert result.blocked_services == ()
        assert result.missing_certifications == ()
        assert result.warnings == ()

    def test_bare_string_is_rejected(self, engine: CertificationRequirementEngine) -> None:
        with pytest.raises(InvalidInputError):
            engine.check_eligibility("boiler_repair", UserCertifications())

    def test_accepts_any_iterable_of_services(
        self, engine: CertificationRequirementEngine, fully_certified: UserCertifications
    ) -> None:
        result = engine.check_eligibility((s for s in ["boiler_repair"]), fully_certified)
        assert result.can_advertise is True

    def test_pending_certification_warns_without_blocking(
        self, engine: CertificationRequirementEngine, certifications_factory
    ) -> None:
        certs = certifications_factory(gasSafe="pending", insurance="verified", businessRegistration="verified")
        result = engine.check_eligibility(["boiler_installation"], certs)

        assert result.can_advertise is True
        assert result.warnings == ("Boiler installation and replacement: Gas Safe Registration is pending verification",)

    @pytest.mark.parametrize("status", ["missing", "rejected", "expired"])
    def test_blocking_statuses(self, engine: CertificationRequirementEngine, certifications_factory, status: str) -> None:
        certs = certifications_factory(partP=status, insurance="verified", businessRegistration="verified")
        result = engine.check_eligibility(["consumer_unit_upgrade"], certs)
        assert result.can_advertise is False
        assert result.missing_certifications == ("Part P Electrical Certification",)

    def test_unknown_service_warns_and_is_skipped(
        self,
        engine: CertificationRequirementEngine,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="tradeguard.engines.certification"):
            result = engine.check_eligibility(["drain_unblocking"], UserCertifications())

        assert result.can_advertise is True
        assert result.warnings == ("drain_unblocking: Service not in compliance database - proceed with caution",)
        assert "drain_unblocking" in caplog.text

    def test_outputs_are_deduplicated_in_first_occurrence_order(
        self, engine: CertificationRequirementEngine
    ) -> None:
        result = engine.check_eligibility(
            ["boiler_repair", "electrical_rewiring", "boiler_repair", "gas_safety_check"],
            UserCertifications(),
        )
        assert result.blocked_services == (
            "Boiler repair and maintenance",
            "Full or partial house rewiring",
            "Annual gas safety inspections and CP12 certificates",
        )
        assert result.missing_certifications == (
            "Gas Safe Registration",
            "Public Liability Insurance",
            "Business Registration",
            "Part P Electrical Certification",
        )
        assert len(result.legal_risks) == 3

    def test_duplicate_pending_warnings_collapse(self, engine: CertificationRequirementEngine, certifications_factory) -> None:
        certs = certifications_factory(gasSafe="verified", insurance="pending", businessRegistration="verified")
        result = engine.check_eligibility(["emergency_repairs", "emergency_repairs"], certs)
        assert result.warnings == ("Emergency plumbing repairs (non-gas): Public Liability Insurance is pending verification",)

    @pytest.mark.parametrize(
        "services",
        [[], ["emergency_repairs"], ["boiler_repair", "unknown"], ["bathroom_electrical", "heating_system_installation"]],
    )
    def test_can_advertise_iff_nothing_blocked(
        self, engine: CertificationRequirementEngine, certifications_factory, services: list[str]
    ) -> None:
        for certs in (UserCertifications(), certifications_factory(insurance="verified", businessRegistration="verified")):
            result = engine.check_eligibility(services, certs)
            assert result.can_advertise == (len(result.blocked_services) == 0)


class TestDisplayNames:
    def test_every_kind_has_a_display_name(self, engine: CertificationRequirementEngine) -> None:
        for kind in CertificationKind:
            assert engine.get_certification_display_name(kind)

    def test_accepts_string_kind(self, engine: CertificationRequirementEngine) -> None:
        assert engine.get_certification_display_name("partP") == "Part P Electrical Certification"

    def test_unknown_kind_raises(self, engine: CertificationRequirementEngine) -> None:
        with pytest.raises(UnknownCertificationKindError) as exc_info:
            engine.get_certification_display_name("corgi")
        assert exc_info.value.kind == "corgi"


class TestHelpers:
    def test_required_certifications_by_partial_match(self, engine: CertificationRequirementEngine) -> None:
        services = {r.service for r in engine.get_required_certifications_for_services(["boiler"])}
        assert services == {"boiler_installation", "boiler_repair"}

    def test_certifications_needing_upload_treats_rejected_and_expired_alike(
        self, engine: CertificationRequirementEngine, certifications_factory
    ) -> None:
        certs = certifications_factory(gasSafe="rejected", partP="expired", insurance="pending", businessRegistration="verified")
        assert engine.certifications_needing_upload(certs) == [CertificationKind.GAS_SAFE, CertificationKind.PART_P]

    def test_warning_text_for_clean_result(
        self, engine: CertificationRequirementEngine, fully_certified: UserCertifications
    ) -> None:
        result = engine.check_eligibility(["boiler_repair"], fully_certified)
        assert engine.generate_compliance_warning(result) == "All certifications verified for requested services."

    def test_warning_text_lists_blocked_services(self, engine: CertificationRequirementEngine) -> None:
        result = engine.check_eligibility(["boiler_repair"], UserCertifications())
        text = engine.generate_compliance_warning(result)
        assert "BLOCKED SERVICES" in text
        assert "- Boiler repair and maintenance" in text
        assert "- Gas Safe Registration" in text

    def test_violation_events_one_per_blocked_service(self, engine: CertificationRequirementEngine) -> None:
        result = engine.check_eligibility(["boiler_repair", "electrical_rewiring"], UserCertifications())
        events = engine.build_violation_events("user-42", result)

        assert [e["service"] for e in events] == list(result.blocked_services)
        assert all(e["user_id"] == "user-42" for e in events)
        assert all(e["severity"] == "high" for e in events)

    def test_no_events_when_nothing_blocked(
        self, engine: CertificationRequirementEngine, fully_certified: UserCertifications
    ) -> None:
        result = engine.check_eligibility(["boiler_repair"], fully_certified)
        assert engine.build_violation_events("user-42", result) == []
