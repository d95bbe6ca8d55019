"""Tests for the core error hierarchy."""

from quorum.core.errors import (
    ConfigError,
    ConsensusError,
    DispatchError,
    LifecycleError,
    OracleError,
    QuorumError,
    TaskError,
    TaskGenerationError,
    VoteParseError,
)


class TestHierarchy:
    """All errors inherit from QuorumError."""

    def test_oracle_error_is_quorum_error(self):
        assert isinstance(OracleError("sim:1", "boom"), QuorumError)

    def test_vote_parse_error_is_oracle_error(self):
        err = VoteParseError("sim:1", "not json")
        assert isinstance(err, OracleError)
        assert isinstance(err, QuorumError)

    def test_task_generation_error_is_task_error(self):
        err = TaskGenerationError("no task")
        assert isinstance(err, TaskError)
        assert isinstance(err, QuorumError)

    def test_remaining_errors_are_quorum_errors(self):
        for err in (
            DispatchError("arbitrage", "failed"),
            ConsensusError("aliased"),
            LifecycleError("bad transition"),
            ConfigError("bad config"),
        ):
            assert isinstance(err, QuorumError)


class TestOracleError:
    def test_oracle_id_attribute(self):
        err = OracleError("openai:gpt-4o", "timeout")
        assert err.oracle_id == "openai:gpt-4o"

    def test_message_format(self):
        err = OracleError("openai:gpt-4o", "timeout")
        assert str(err) == "[openai:gpt-4o] timeout"


class TestDispatchError:
    def test_action_type_and_message(self):
        err = DispatchError("governance", "contract reverted")
        assert err.action_type == "governance"
        assert str(err) == "[governance] contract reverted"

    def test_decision_defaults_to_none(self):
        assert DispatchError("generic", "x").decision is None

    def test_decision_is_settable(self):
        err = DispatchError("generic", "x")
        sentinel = object()
        err.decision = sentinel  # type: ignore[assignment]
        assert err.decision is sentinel
