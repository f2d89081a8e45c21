import pytest

from recruitflow.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from recruitflow.models import InterviewQuestion, InterviewStage, ProcessStatus, StageStatus
from recruitflow.services.entity_store import INTERVIEW_PROCESSES
from recruitflow.services.stage_catalog import build_stages, default_stage_configs


def stored(store, process):
    return store.get(INTERVIEW_PROCESSES, process.id)


def test_create_process(machine, store):
    process = machine.create_process("cand-1", "job-1", build_stages(default_stage_configs(3)))

    assert process.status == ProcessStatus.IN_PROGRESS
    assert process.current_stage == 0
    assert [s.status for s in process.stages] == [StageStatus.PENDING] * 3
    assert stored(store, process)["candidateId"] == "cand-1"


def test_create_process_requires_stages(machine):
    with pytest.raises(ValidationError):
        machine.create_process("cand-1", "job-1", [])


def test_create_process_requires_pending_stages(machine):
    stages = build_stages(default_stage_configs(2))
    stages[0] = stages[0].started()
    with pytest.raises(ValidationError):
        machine.create_process("cand-1", "job-1", stages)


def test_create_process_rejects_misordered_stages(machine):
    stages = [InterviewStage(name="Only", type="technical", order=1)]
    with pytest.raises(ValidationError):
        machine.create_process("cand-1", "job-1", stages)


def test_pass_advances_to_next_stage(make_process, store, machine):
    process = make_process(3)
    first = process.stages[0]

    updated = machine.apply_stage_result(process, first.id, True)

    assert updated.status == ProcessStatus.IN_PROGRESS
    assert updated.current_stage == 1
    assert updated.stages[0].status == StageStatus.COMPLETED
    assert updated.stages[0].passed is True
    assert updated.stages[1].status == StageStatus.PENDING
    assert stored(store, process)["currentStage"] == 1
    # the caller's object is untouched
    assert process.current_stage == 0
    assert process.stages[0].status == StageStatus.PENDING


def test_passing_every_stage_completes_process(make_process, machine):
    process = make_process(3)
    for i, stage in enumerate(list(process.stages)):
        process = machine.apply_stage_result(process, stage.id, True)
        if i < 2:
            assert process.current_stage == i + 1
            assert process.status == ProcessStatus.IN_PROGRESS

    assert process.status == ProcessStatus.COMPLETED
    assert process.current_stage == 2
    assert all(s.passed is True for s in process.stages)


def test_fail_ends_process_at_failed_stage(make_process, machine, store):
    process = make_process(3)
    process = machine.apply_stage_result(process, process.stages[0].id, True)

    process = machine.apply_stage_result(process, process.stages[1].id, False)

    assert process.status == ProcessStatus.COMPLETED
    assert process.current_stage == 1
    assert process.stages[1].passed is False
    assert process.stages[2].status == StageStatus.PENDING
    assert stored(store, process)["status"] == "completed"


def test_fail_on_last_stage_completes_process(make_process, machine):
    process = make_process(2)
    process = machine.apply_stage_result(process, process.stages[0].id, True)
    process = machine.apply_stage_result(process, process.stages[1].id, False)

    assert process.status == ProcessStatus.COMPLETED
    assert process.current_stage == 1
    assert process.has_failed_stage()


def test_single_stage_process(make_process, machine):
    process = make_process(1)
    process = machine.apply_stage_result(process, process.stages[0].id, True)
    assert process.status == ProcessStatus.COMPLETED
    assert process.current_stage == 0


def test_stages_must_be_completed_in_order(make_process, machine, store):
    process = make_process(3)
    before = stored(store, process)

    with pytest.raises(InvalidStateError) as exc_info:
        machine.apply_stage_result(process, process.stages[2].id, True)

    assert exc_info.value.stage_id == process.stages[2].id
    assert stored(store, process) == before


def test_unknown_stage(make_process, machine):
    process = make_process(2)
    with pytest.raises(NotFoundError):
        machine.apply_stage_result(process, "no-such-stage", True)


def test_same_verdict_twice_is_a_no_op(make_process, machine, store):
    process = make_process(3)
    first = process.stages[0].id
    process = machine.apply_stage_result(process, first, True)
    after_first = stored(store, process)

    again = machine.apply_stage_result(process, first, True)

    assert again == process
    assert stored(store, process) == after_first


def test_same_verdict_replayed_from_stale_copy(make_process, machine):
    process = make_process(3)
    first = process.stages[0].id
    machine.apply_stage_result(process, first, True)

    # a retry that reloads the process sees the verdict already applied
    reloaded = machine.load_process(process.id)
    again = machine.apply_stage_result(reloaded, first, True)
    assert again.current_stage == 1


def test_conflicting_verdict_is_rejected(make_process, machine, store):
    process = make_process(3)
    first = process.stages[0].id
    process = machine.apply_stage_result(process, first, True)
    before = stored(store, process)

    with pytest.raises(InvalidStateError):
        machine.apply_stage_result(process, first, False)
    assert stored(store, process) == before


def test_no_results_after_completion(make_process, machine):
    process = make_process(3)
    process = machine.apply_stage_result(process, process.stages[0].id, False)

    with pytest.raises(InvalidStateError):
        machine.apply_stage_result(process, process.stages[1].id, True)


def test_cancel_process(make_process, machine, store):
    process = make_process(2)
    cancelled = machine.cancel_process(process)

    assert cancelled.status == ProcessStatus.CANCELLED
    assert stored(store, process)["status"] == "cancelled"
    # cancelling twice changes nothing
    assert machine.cancel_process(cancelled) is cancelled

    with pytest.raises(InvalidStateError):
        machine.apply_stage_result(cancelled, cancelled.stages[0].id, True)


def test_completed_process_cannot_be_cancelled(make_process, machine):
    process = make_process(1)
    process = machine.apply_stage_result(process, process.stages[0].id, True)
    with pytest.raises(InvalidStateError):
        machine.cancel_process(process)


def test_start_stage(make_process, machine, store):
    process = make_process(2)
    started = machine.start_stage(process, process.stages[0].id)

    assert started.stages[0].status == StageStatus.IN_PROGRESS
    assert stored(store, process)["stages"][0]["status"] == "in_progress"
    assert machine.start_stage(started, started.stages[0].id) is started

    with pytest.raises(InvalidStateError):
        machine.start_stage(started, started.stages[1].id)


def test_started_stage_can_still_be_judged(make_process, machine):
    process = make_process(2)
    process = machine.start_stage(process, process.stages[0].id)
    process = machine.apply_stage_result(process, process.stages[0].id, True)
    assert process.current_stage == 1


def test_attach_questions(make_process, machine, store):
    process = make_process(2)
    questions = [InterviewQuestion(text="Why retail?", category="motivation", expected_answer="Honesty")]

    updated = machine.attach_questions(process, process.stages[1].id, questions)

    assert updated.stages[1].questions[0].text == "Why retail?"
    assert stored(store, process)["stages"][1]["questions"][0]["expectedAnswer"] == "Honesty"


def test_questions_frozen_after_completion(make_process, machine):
    process = make_process(2)
    process = machine.apply_stage_result(process, process.stages[0].id, True)
    with pytest.raises(InvalidStateError):
        machine.attach_questions(process, process.stages[0].id, [InterviewQuestion(text="Late?")])


def test_list_processes_filters(machine):
    a = machine.create_process("cand-1", "job-1", build_stages(default_stage_configs(1)))
    b = machine.create_process("cand-2", "job-1", build_stages(default_stage_configs(1)))
    machine.create_process("cand-1", "job-2", build_stages(default_stage_configs(1)))

    assert len(machine.list_processes()) == 3
    assert {p.id for p in machine.list_processes(job_posting_id="job-1")} == {a.id, b.id}
    assert [p.id for p in machine.list_processes(candidate_id="cand-1", job_posting_id="job-1")] == [a.id]


def test_load_missing_process(machine):
    with pytest.raises(NotFoundError):
        machine.load_process("missing")
