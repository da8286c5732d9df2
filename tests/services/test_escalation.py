"""
Tests for the escalation policy state machine.
"""

import pytest

from satisfaction_api.services.escalation import (
    EscalationPolicy, EscalationPhase, ResolutionMethod, CONTACT_RESOLUTION_REQUIRED,
)


class TestEvaluation:

    def test_starts_not_evaluated(self):
        policy = EscalationPolicy(threshold=0.5)
        assert policy.phase == EscalationPhase.NOT_EVALUATED
        assert policy.score is None
        assert policy.requires_contact is False

    def test_score_equal_to_threshold_escalates(self):
        """The comparison is >=, not >."""
        policy = EscalationPolicy(threshold=0.5)
        assert policy.evaluate(0.5) == EscalationPhase.PENDING_CONTACT
        assert policy.requires_contact is True

    def test_score_below_threshold_is_clear(self):
        policy = EscalationPolicy(threshold=0.5)
        assert policy.evaluate(0.49) == EscalationPhase.CLEAR

    def test_phase_follows_score_changes(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.8)
        assert policy.phase == EscalationPhase.PENDING_CONTACT
        policy.evaluate(0.1)
        assert policy.phase == EscalationPhase.CLEAR
        policy.evaluate(0.6)
        assert policy.phase == EscalationPhase.PENDING_CONTACT

    def test_default_threshold_from_settings(self):
        assert EscalationPolicy().threshold == 0.5

    def test_custom_threshold(self):
        policy = EscalationPolicy(threshold=0.3)
        assert policy.evaluate(0.3) == EscalationPhase.PENDING_CONTACT


class TestResolution:

    @pytest.mark.parametrize("method", list(ResolutionMethod))
    def test_resolution_from_pending(self, method):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.9)

        assert policy.resolve(method) is True
        assert policy.phase == EscalationPhase.RESOLVED
        assert policy.resolution == method

    def test_second_skip_is_a_no_op(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.9)

        assert policy.resolve(ResolutionMethod.SKIPPED) is True
        assert policy.resolve(ResolutionMethod.SKIPPED) is False
        assert policy.phase == EscalationPhase.RESOLVED

    def test_contact_after_skip_keeps_first_resolution(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.9)
        policy.resolve(ResolutionMethod.SKIPPED)

        assert policy.resolve(ResolutionMethod.CONTACT_PROVIDED) is False
        assert policy.resolution == ResolutionMethod.SKIPPED

    def test_resolution_without_pending_contact_is_ignored(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.2)

        assert policy.resolve(ResolutionMethod.SKIPPED) is False
        assert policy.phase == EscalationPhase.CLEAR

    def test_resolved_is_terminal(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.9)
        policy.resolve(ResolutionMethod.CONTACT_PROVIDED)

        assert policy.evaluate(0.1) == EscalationPhase.RESOLVED
        assert policy.evaluate(1.0) == EscalationPhase.RESOLVED
        assert policy.score == 1.0

    def test_reopen_after_failed_resolution(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.9)
        policy.resolve(ResolutionMethod.CONTACT_PROVIDED)

        policy.reopen()

        assert policy.phase == EscalationPhase.PENDING_CONTACT
        assert policy.resolution is None
        assert policy.resolve(ResolutionMethod.CONTACT_PROVIDED) is True


class TestSubmissionGate:

    def test_pending_contact_blocks_submission(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.7)

        gate = policy.check_submission()
        assert gate.allowed is False
        assert gate.reason == CONTACT_RESOLUTION_REQUIRED

    def test_clear_submits_immediately(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.0)
        assert policy.check_submission().allowed is True

    def test_resolved_submits(self):
        policy = EscalationPolicy(threshold=0.5)
        policy.evaluate(0.7)
        policy.resolve(ResolutionMethod.SKIPPED)
        assert policy.check_submission().allowed is True
