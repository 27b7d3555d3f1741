"""
tests/unit/test_trigger_gate.py - Admission-Regeln des TriggerGate
"""

from core.gate import TriggerGate
from core.models import ChatContext, ChatMessage
from utils.pipeline_settings import PipelineSettings


def _warm_gate(pipeline, **kwargs) -> TriggerGate:
    gate = TriggerGate(pipeline, **kwargs)
    gate.suppress_next_trigger = False
    return gate


def test_admits_new_user_message_and_records_key(make_pipeline, sample_context):
    gate = _warm_gate(make_pipeline())
    decision = gate.evaluate(sample_context)
    assert decision.admitted
    assert decision.message_key == "ts:2024-05-01T10:01:00"
    assert gate.last_processed_key == decision.message_key


def test_same_message_is_not_processed_twice(make_pipeline, sample_context):
    gate = _warm_gate(make_pipeline())
    assert gate.evaluate(sample_context).admitted
    second = gate.evaluate(sample_context)
    assert not second.admitted
    assert second.reason == "already_processed"


def test_new_user_message_is_admitted_again(make_pipeline, sample_context):
    gate = _warm_gate(make_pipeline())
    gate.evaluate(sample_context)
    sample_context.chat.append(ChatMessage(mes="hello?", is_user=True, send_date="2024-05-01T10:02:00"))
    assert gate.evaluate(sample_context).admitted


def test_disabled_suppresses_unconditionally(make_pipeline, sample_context):
    pipeline = make_pipeline(settings=PipelineSettings(enabled=False))
    gate = _warm_gate(pipeline)
    decision = gate.evaluate(sample_context)
    assert not decision.admitted
    assert decision.reason == "disabled"
    assert gate.last_processed_key is None


def test_internal_request_is_suppressed(make_pipeline, sample_context):
    gate = _warm_gate(make_pipeline())
    assert gate.evaluate(sample_context, internal=True).reason == "internal_request"


def test_in_flight_stage_call_is_suppressed(make_pipeline, executor_cls, sample_context):
    executor = executor_cls()
    executor.in_flight = 1
    gate = _warm_gate(make_pipeline(executor))
    assert gate.evaluate(sample_context).reason == "internal_request"


def test_running_pipeline_is_suppressed(make_pipeline, sample_context):
    pipeline = make_pipeline()
    gate = _warm_gate(pipeline)
    pipeline._running = True
    assert gate.evaluate(sample_context).reason == "pipeline_running"
    assert gate.last_processed_key is None


def test_cold_start_suppressed_once(make_pipeline, sample_context):
    gate = TriggerGate(make_pipeline())
    first = gate.evaluate(sample_context)
    assert not first.admitted
    assert first.reason == "cold_start"
    assert gate.evaluate(sample_context).admitted


def test_reset_restores_cold_start_and_forgets_key(make_pipeline, sample_context):
    gate = _warm_gate(make_pipeline())
    gate.evaluate(sample_context)
    gate.reset()
    assert gate.last_processed_key is None
    assert gate.evaluate(sample_context).reason == "cold_start"
    # gleiche Nachricht nach Reset wieder zulässig
    assert gate.evaluate(sample_context).admitted


def test_empty_chat_suppressed(make_pipeline):
    gate = _warm_gate(make_pipeline())
    assert gate.evaluate(ChatContext()).reason == "empty_chat"


def test_last_message_from_character_suppressed(make_pipeline, sample_context):
    sample_context.chat.append(ChatMessage(mes="swipe", is_user=False))
    gate = _warm_gate(make_pipeline())
    assert gate.evaluate(sample_context).reason == "last_message_not_user"


def test_rules_evaluated_in_order(make_pipeline):
    # disabled schlägt cold start: das Cold-Start-Flag bleibt gesetzt
    gate = TriggerGate(make_pipeline(settings=PipelineSettings(enabled=False)))
    assert gate.evaluate(ChatContext()).reason == "disabled"
    assert gate.suppress_next_trigger
