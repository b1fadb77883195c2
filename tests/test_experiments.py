"""
Tests for landing page experiment bucketing.
"""
from collections import Counter

import pytest

from eduprep.errors import NotFoundError, ValidationError
from eduprep.models import ExperimentEvent
from eduprep.services.experiment_service import (
    ExperimentService,
    InMemoryAssignmentStore,
    compute_bucket,
    pick_variant,
    simple_hash,
)

WEIGHTS = {"control": 33, "B": 33, "C": 34}


@pytest.fixture
def service():
    return ExperimentService(InMemoryAssignmentStore(), experiments={"exp1": WEIGHTS})


class TestSimpleHash:
    """Tests for the 32-bit string hash."""

    def test_known_values(self):
        assert simple_hash("") == 0
        assert simple_hash("a") == 97
        assert simple_hash("ab") == 97 * 31 + 98
        assert simple_hash("hello") == 99162322

    def test_wraps_to_signed_32_bit_then_abs(self):
        # Hashes to exactly -2**31
        assert simple_hash("polygenelubricants") == 2 ** 31

    def test_non_ascii_uses_utf16_code_units(self):
        assert simple_hash("ә") == ord("ә")

    def test_bucket_range(self):
        for i in range(200):
            assert 0 <= compute_bucket(f"visitor-{i}", "exp1") < 100


class TestPickVariant:
    """Tests for cumulative weight selection."""

    @pytest.mark.parametrize("bucket,expected", [
        (0, "control"), (32, "control"),
        (33, "B"), (65, "B"),
        (66, "C"), (99, "C"),
    ])
    def test_boundaries(self, bucket, expected):
        assert pick_variant(bucket, WEIGHTS) == expected

    def test_zero_weight_variant_never_selected(self):
        weights = {"control": 0, "B": 100}
        assert {pick_variant(bucket, weights) for bucket in range(100)} == {"B"}


class TestAssignVariant:
    """Tests for ExperimentService.assign_variant."""

    def test_same_visitor_gets_same_variant(self, service):
        first = service.assign_variant("visitor-42", "exp1", WEIGHTS)
        second = service.assign_variant("visitor-42", "exp1", WEIGHTS)

        assert first.variant == second.variant
        assert not first.cached
        assert second.cached
        assert second.bucket is None

    def test_deterministic_across_stores(self):
        a = ExperimentService(InMemoryAssignmentStore(), experiments={"exp1": WEIGHTS})
        b = ExperimentService(InMemoryAssignmentStore(), experiments={"exp1": WEIGHTS})

        assert a.assign_variant("visitor-42", "exp1").variant == b.assign_variant("visitor-42", "exp1").variant

    def test_first_assignment_matches_bucket(self, service):
        assignment = service.assign_variant("visitor-7", "exp1")

        assert assignment.bucket == compute_bucket("visitor-7", "exp1")
        assert assignment.variant == pick_variant(assignment.bucket, WEIGHTS)

    def test_stored_assignment_wins(self):
        store = InMemoryAssignmentStore()
        store.set("experiment:exp1:visitor-42", "C")
        service = ExperimentService(store, experiments={"exp1": WEIGHTS})

        assignment = service.assign_variant("visitor-42", "exp1")

        assert assignment.variant == "C"
        assert assignment.cached

    def test_assignment_is_persisted(self, service):
        assignment = service.assign_variant("visitor-1", "exp1")

        assert service.store.get("experiment:exp1:visitor-1") == assignment.variant

    def test_all_variants_reachable(self, service):
        counts = Counter(
            service.assign_variant(f"visitor-{i}", "exp1").variant for i in range(3000)
        )

        assert set(counts) == {"control", "B", "C"}
        assert all(count >= 500 for count in counts.values())

    def test_unknown_experiment(self, service):
        with pytest.raises(NotFoundError):
            service.assign_variant("visitor-1", "nope")

    def test_invalid_weights_rejected(self, service):
        with pytest.raises(ValidationError):
            service.assign_variant("visitor-1", "exp1", {"control": 50, "B": 40})

    def test_invalid_configuration_fails_at_construction(self):
        with pytest.raises(ValueError):
            ExperimentService(InMemoryAssignmentStore(), experiments={"bad": {"a": 60, "b": 60}})

    def test_empty_visitor_rejected(self, service):
        with pytest.raises(ValidationError):
            service.assign_variant("", "exp1")

    def test_default_experiment_configured(self):
        service = ExperimentService(InMemoryAssignmentStore())

        assignment = service.assign_variant("visitor-1", "pm_landing_conversion_test")

        assert assignment.variant in {"control", "variantB", "variantC"}


class TestTrackEvent:
    """Tests for ExperimentService.track_event."""

    def test_event_is_stored_with_variant(self, service, db_session):
        variant = service.assign_variant("visitor-9", "exp1").variant

        event = service.track_event(db_session, "exp1", "visitor-9", "hero_cta_click", {"position": "top"})

        stored = db_session.query(ExperimentEvent).filter(ExperimentEvent.id == event.id).one()
        assert stored.variant == variant
        assert stored.properties == {"position": "top"}

    def test_unknown_event_rejected(self, service, db_session):
        with pytest.raises(ValidationError):
            service.track_event(db_session, "exp1", "visitor-9", "made_up_event")

        assert db_session.query(ExperimentEvent).count() == 0
