import pytest

from end2end import (
    InvalidPattern,
    InvalidSeverityToken,
    MalformedPayload,
    MalformedStep,
    MissingURL,
)
from end2end.state import critical, ok, unknown, warn
from end2end.step import Step, Steps, decode_payload


class TestDecodePayload:
    def test_decode(self) -> None:
        assert {"username": "me", "password": "s3cr=t"} == decode_payload(
            "username=me&password=s3cr%3Dt"
        )

    def test_blank_values_are_kept(self) -> None:
        assert {"a": "", "b": "1"} == decode_payload("a=&b=1")

    def test_malformed(self) -> None:
        with pytest.raises(MalformedPayload):
            decode_payload("just some text")


class TestStep:
    def test_defaults(self) -> None:
        step = Step.from_config("00", {"url": "http://example.com/"})
        assert "get" == step.method
        assert step.payload is None
        assert critical == step.on_failure
        assert step.pattern is None
        assert critical == step.on_pattern_failure
        assert step.basic_auth is None

    def test_missing_url(self) -> None:
        with pytest.raises(MissingURL):
            Step.from_config("00", {"method": "GET"})

    def test_method_is_lowercased(self) -> None:
        assert "post" == Step.from_config("00", {"url": "u", "method": "POST"}).method

    def test_binary_data(self) -> None:
        step = Step.from_config("00", {"url": "u", "binaryData": "user=a&pw=b"})
        assert {"user": "a", "pw": "b"} == dict(step.payload or {})

    def test_legacy_binary_data_key(self) -> None:
        step = Step.from_config("00", {"url": "u", "binary_data": "user=a"})
        assert {"user": "a"} == dict(step.payload or {})

    def test_malformed_binary_data(self) -> None:
        with pytest.raises(MalformedPayload):
            Step.from_config("00", {"url": "u", "binaryData": "no pairs here"})

    def test_on_failure(self) -> None:
        step = Step.from_config("00", {"url": "u", "onFailure": "warning"})
        assert warn == step.on_failure

    def test_invalid_on_failure(self) -> None:
        with pytest.raises(InvalidSeverityToken):
            Step.from_config("00", {"url": "u", "onFailure": "sometimes"})

    def test_grep_regex(self) -> None:
        step = Step.from_config("00", {"url": "u", "grepRegex": r"Welcome, \w+"})
        assert step.pattern is not None
        assert step.pattern.search("<h1>Welcome, admin</h1>")
        assert critical == step.on_pattern_failure

    def test_invalid_grep_regex(self) -> None:
        with pytest.raises(InvalidPattern):
            Step.from_config("00", {"url": "u", "grepRegex": "(unbalanced"})

    def test_grep_literal_escapes_metacharacters(self) -> None:
        step = Step.from_config("00", {"url": "u", "grepLiteral": "a.b"})
        assert step.pattern is not None
        assert step.pattern.search("xx a.b xx")
        assert not step.pattern.search("xx axb xx")

    def test_grep_regex_wins_over_grep_literal(self) -> None:
        step = Step.from_config(
            "00", {"url": "u", "grepRegex": "a.b", "grepLiteral": "zzz"}
        )
        assert step.pattern is not None
        assert "a.b" == step.pattern.pattern
        assert step.pattern.search("axb")

    def test_on_pattern_failure(self) -> None:
        step = Step.from_config(
            "00", {"url": "u", "grepLiteral": "x", "onPatternFailure": "Ok"}
        )
        assert ok == step.on_pattern_failure

    def test_basic_auth(self) -> None:
        step = Step.from_config("00", {"url": "u", "authUser": "bob"})
        assert ("bob", "") == step.basic_auth

    def test_basic_auth_inherited_from_base(self) -> None:
        base = {"authUser": "bob", "authPassword": "secret"}
        step = Step.from_config("00", {"url": "u"}, base)
        assert ("bob", "secret") == step.basic_auth

    def test_step_overrides_base(self) -> None:
        base = {"authUser": "bob", "authPassword": "secret", "onFailure": "WARNING"}
        step = Step.from_config(
            "00", {"url": "u", "authUser": "alice", "onFailure": "UNKNOWN"}, base
        )
        assert ("alice", "") == step.basic_auth
        assert unknown == step.on_failure

    def test_step_user_with_own_password(self) -> None:
        base = {"authUser": "bob", "authPassword": "secret"}
        step = Step.from_config(
            "00", {"url": "u", "authUser": "alice", "authPassword": "pw"}, base
        )
        assert ("alice", "pw") == step.basic_auth

    def test_step_password_for_global_user(self) -> None:
        base = {"authUser": "bob", "authPassword": "secret"}
        step = Step.from_config("00", {"url": "u", "authPassword": "pw"}, base)
        assert ("bob", "pw") == step.basic_auth

    def test_base_is_not_modified(self) -> None:
        base = {"authUser": "bob"}
        Step.from_config("00", {"url": "u", "authUser": "alice"}, base)
        assert {"authUser": "bob"} == base

    def test_step_is_immutable(self) -> None:
        step = Step.from_config("00", {"url": "u", "binaryData": "a=1"})
        with pytest.raises(AttributeError):
            step.url = "v"  # type: ignore
        with pytest.raises(TypeError):
            step.payload["a"] = "2"  # type: ignore


class TestSteps:
    def test_list_is_sorted(self) -> None:
        steps = Steps({"03 - x": {"url": "a"}, "00 - y": {"url": "b"}, "01 - z": {}})
        assert ["00 - y", "01 - z", "03 - x"] == steps.list()

    def test_step_is_built_lazily(self) -> None:
        steps = Steps({"00": {"url": "a"}, "01": {}})
        assert "a" == steps.step("00").url
        with pytest.raises(MalformedStep, match="cannot proceed on step 01") as exc:
            steps.step("01")
        assert isinstance(exc.value.__cause__, MissingURL)

    def test_unknown_step(self) -> None:
        with pytest.raises(MalformedStep):
            Steps({}).step("nope")

    def test_base_is_merged_into_every_step(self) -> None:
        steps = Steps({"00": {"url": "a"}, "01": {"url": "b"}}, {"authUser": "bob"})
        assert ("bob", "") == steps.step("00").basic_auth
        assert ("bob", "") == steps.step("01").basic_auth

    def test_from_config(self) -> None:
        config = {
            "shortname": "Login",
            "authUser": "bob",
            "BASE_URL": "http://example.com",
            "Step": {"00": {"url": "http://example.com/"}},
        }
        steps = Steps.from_config(config)
        assert ["00"] == steps.list()
        assert {"authUser": "bob"} == steps.base

    def test_from_config_without_steps(self) -> None:
        assert [] == Steps.from_config({}).list()
