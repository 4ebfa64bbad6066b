import asyncio

import pytest

from conftest import say, start_active_interview


ANSWER = "Consistency, availability and partition tolerance: under a partition you pick one of the first two."


async def _open_pair(controller, question="Explain CAP theorem", answer=ANSWER):
    await say(controller, "interviewer", question, 1.0)
    await say(controller, "candidate", answer, 2.0)


@pytest.mark.asyncio
async def test_trigger_clears_pending_pair_synchronously(controller, fake_client):
    await start_active_interview(controller)
    await _open_pair(controller)
    gate = fake_client.gates["assessment"] = asyncio.Event()

    async with controller.handle.lock:
        first = controller.coordinator.trigger()
        # cleared before the completion call could even start
        assert controller.session.pending_question == ""
        assert controller.session.pending_answer == ""
        assert controller.session.pending_question_topic is None
        second = controller.coordinator.trigger()

    assert first is not None
    assert second is None

    gate.set()
    await controller.coordinator.wait_idle()
    assert len(controller.session.assessments) == 1


@pytest.mark.asyncio
async def test_back_to_back_interviewer_turns_assess_once(controller, fake_client):
    await start_active_interview(controller)
    await _open_pair(controller)
    gate = fake_client.gates["assessment"] = asyncio.Event()

    await asyncio.gather(
        say(controller, "interviewer", "Next question", 3.0),
        say(controller, "interviewer", "Actually, another one", 3.0),
    )
    gate.set()
    await controller.coordinator.wait_idle()

    assert fake_client.kinds().count("assessment") == 1
    assert len(controller.session.assessments) == 1


@pytest.mark.asyncio
async def test_assessment_ready_event_and_fields(controller, events):
    await start_active_interview(controller)
    await _open_pair(controller)

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result["ok"] is True
    assessment = controller.session.assessments[0]
    assert assessment.score == 4
    assert assessment.verdict == "strong"
    assert assessment.topic == "General"
    assert assessment.key_gaps == ("no mention of failure modes",)
    assert assessment.follow_up_questions[0].question == "What breaks first?"
    ready = events.of("assessment_ready")
    assert ready and ready[0]["assessment"]["question"] == "Explain CAP theorem"


@pytest.mark.asyncio
async def test_force_assess_with_nothing_pending_is_rejected(controller):
    await start_active_interview(controller)

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result["ok"] is False
    assert "pending" in result["error"]


@pytest.mark.asyncio
async def test_force_assess_ignores_answer_length_threshold(controller, fake_client):
    await start_active_interview(controller)
    await _open_pair(controller, answer="Yes.")

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result["ok"] is True
    assert controller.session.assessments[0].answer == "Yes."


@pytest.mark.asyncio
async def test_failed_assessment_reports_error_and_loses_pair(controller, fake_client, events):
    await start_active_interview(controller)
    await _open_pair(controller)
    fake_client.failures.add("assessment")

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result == {"ok": False, "error": "Assessment failed"}
    assert controller.session.assessments == []
    assert controller.session.pending_question == ""
    assert controller.session.pending_answer == ""
    assert events.of("assessment_error")[0]["message"] == "assessment call failed"


@pytest.mark.asyncio
async def test_malformed_assessment_json_is_a_parse_failure(controller, fake_client, events):
    await start_active_interview(controller)
    await _open_pair(controller)
    fake_client.responses["assessment"] = '{"score": 9, "verdict": "amazing"}'

    await controller.dispatch({"type": "FORCE_ASSESS"})

    assert controller.session.assessments == []
    assert "did not match AssessmentResult" in events.of("assessment_error")[0]["message"]


@pytest.mark.asyncio
async def test_answer_is_truncated_in_prompt(controller, fake_client):
    await start_active_interview(controller)
    await _open_pair(controller, answer="x" * 5000)

    await controller.dispatch({"type": "FORCE_ASSESS"})

    _, request = [item for item in fake_client.requests if item[0] == "assessment"][0]
    assert "x" * 2000 in request.user_prompt
    assert "x" * 2001 not in request.user_prompt
    # the stored answer keeps the full text
    assert len(controller.session.assessments[0].answer) == 5000


@pytest.mark.asyncio
async def test_result_arriving_after_reset_is_dropped(controller, fake_client, events):
    await start_active_interview(controller)
    await _open_pair(controller)
    gate = fake_client.gates["assessment"] = asyncio.Event()

    async with controller.handle.lock:
        task = controller.coordinator.trigger()
    await controller.dispatch({"type": "RESET"})
    gate.set()

    assert await task is None
    assert controller.session.assessments == []
    assert events.of("assessment_ready") == []


@pytest.mark.asyncio
async def test_force_assess_after_report_is_rejected(controller, fake_client):
    await start_active_interview(controller)
    await _open_pair(controller, answer="Pick two.")

    ended = await controller.dispatch({"type": "END_INTERVIEW"})
    assert ended == {"ok": True, "report_ready": True}
    # too short for the final flush, and not carried into the ended session
    assert controller.session.pending_question == ""
    assert controller.session.pending_answer == ""

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result["ok"] is False
    assert "ENDED" in result["error"]
    assert controller.session.assessments == []
    assert "assessment" not in fake_client.kinds()


@pytest.mark.asyncio
async def test_force_assess_outside_interview_is_rejected(controller):
    await controller.dispatch({"type": "UPLOAD_RESUME", "resumeText": "Kubernetes"})

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result["ok"] is False
    assert "SETUP" in result["error"]


@pytest.mark.asyncio
async def test_force_assess_needs_an_answer(controller, fake_client):
    await start_active_interview(controller)
    await say(controller, "interviewer", "Explain CAP theorem", 1.0)

    result = await controller.dispatch({"type": "FORCE_ASSESS"})

    assert result == {"ok": False, "error": "No pending question/answer pair to assess"}
    assert controller.session.pending_question == "Explain CAP theorem"
    assert "assessment" not in fake_client.kinds()
