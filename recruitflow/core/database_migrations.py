# recruitflow/core/database_migrations.py - bring stored records up to the current schema

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from recruitflow.core.config import get_settings
from recruitflow.core.logging_config import configure_logging
from recruitflow.models.interview import InterviewProcess, ProcessStatus, StageStatus
from recruitflow.services.entity_store import INTERVIEW_PROCESSES, INTERVIEWS, EntityStore, get_store
from recruitflow.services.process_machine import ProcessStateMachine

logger = logging.getLogger(__name__)

STAGE_STATUSES = {s.value for s in StageStatus}
PROCESS_STATUSES = {s.value for s in ProcessStatus}


def _migrate_question(question: Dict[str, Any]) -> Dict[str, Any]:
    """Questions written by the old server used `question` instead of `text`"""
    migrated = dict(question)
    if not migrated.get("text") and migrated.get("question"):
        migrated["text"] = migrated["question"]
    migrated.setdefault("category", "")
    migrated.setdefault("expectedAnswer", "")
    return migrated


def normalize_stage_record(stage: Dict[str, Any], position: int) -> Dict[str, Any]:
    migrated = dict(stage)
    migrated["order"] = position
    if migrated.get("status") not in STAGE_STATUSES:
        migrated["status"] = StageStatus.PENDING.value

    if migrated["status"] == StageStatus.COMPLETED.value and not isinstance(migrated.get("passed"), bool):
        logger.warning("Stage %s is completed without a verdict; reopening it", migrated.get("id"))
        migrated["status"] = StageStatus.IN_PROGRESS.value
    if migrated["status"] != StageStatus.COMPLETED.value:
        migrated.pop("passed", None)

    migrated["questions"] = [_migrate_question(q) for q in migrated.get("questions") or []]
    migrated.pop("interviewId", None)
    return migrated


def normalize_process_record(record: Dict[str, Any], now: Optional[str] = None) -> Dict[str, Any]:
    """
    Fill in missing fields and re-derive status and currentStage from the
    stage verdicts, so the record satisfies the process invariants.
    """
    now = now or datetime.now(timezone.utc).isoformat()
    migrated = dict(record)
    migrated.pop("generateQuestionsForStages", None)

    stages = [normalize_stage_record(stage, idx) for idx, stage in enumerate(migrated.get("stages") or [])]
    migrated["stages"] = stages
    migrated.setdefault("createdAt", now)
    migrated.setdefault("updatedAt", migrated["createdAt"])

    status = migrated.get("status")
    if status not in PROCESS_STATUSES:
        status = ProcessStatus.IN_PROGRESS.value

    failed_at = next((idx for idx, s in enumerate(stages) if s.get("passed") is False), None)
    last_passed = bool(stages) and stages[-1].get("passed") is True

    if failed_at is not None or last_passed:
        status = ProcessStatus.COMPLETED.value
        current = failed_at if failed_at is not None else len(stages) - 1
    else:
        if status == ProcessStatus.COMPLETED.value:
            status = ProcessStatus.IN_PROGRESS.value
        current = next((idx for idx, s in enumerate(stages) if s["status"] != StageStatus.COMPLETED.value), 0)

    migrated["status"] = status
    migrated["currentStage"] = current
    return migrated


class RecordMigrations:
    def __init__(self, store: Optional[EntityStore] = None):
        self.store = store or get_store()
        self.machine = ProcessStateMachine(self.store)

    def migrate_existing_data(self) -> Dict[str, Any]:
        """Migrate existing process and interview records to the current schema"""
        logger.info("Starting record migration...")
        updated, skipped = self._migrate_processes()
        summary: Dict[str, Any] = {
            "processes_updated": updated,
            "processes_skipped": skipped,
            "verdicts_replayed": self._replay_unapplied_verdicts(),
        }
        summary["interviews_updated"] = self._refresh_interview_snapshots()
        logger.info("Record migration completed: %s", summary)
        return summary

    def _migrate_processes(self) -> Tuple[int, List[str]]:
        """Rewrite repairable process records; ids of the others are returned untouched"""
        updated = 0
        skipped: List[str] = []
        for record in self.store.list(INTERVIEW_PROCESSES):
            record_id = record.get("id")
            if not record.get("stages"):
                logger.warning("Skipping process %s: it has no stages", record_id)
                skipped.append(record_id)
                continue
            try:
                migrated = normalize_process_record(record)
                InterviewProcess.from_record(migrated)
            except (TypeError, ValueError) as e:
                # pydantic's ValidationError is a ValueError
                logger.warning("Skipping process %s: it cannot be repaired (%s)", record_id, e)
                skipped.append(record_id)
                continue
            if migrated != record:
                self.store.put(INTERVIEW_PROCESSES, migrated)
                updated += 1
        return updated, skipped

    def _replay_unapplied_verdicts(self) -> int:
        """
        Completed interviews whose verdict never reached the process (the
        second of the two writes failed) get it applied now.
        """
        replayed = 0
        for record in self.store.list(INTERVIEWS):
            stage = record.get("stage") or {}
            if record.get("status") != "completed" or not isinstance(stage.get("passed"), bool):
                continue
            process = self._find_process(record.get("processId"))
            if process is None:
                continue
            idx = process.stage_index(stage.get("id"))
            if idx is None or process.stages[idx].is_completed:
                continue
            if process.status != ProcessStatus.IN_PROGRESS or idx != process.current_stage:
                logger.warning("Cannot replay verdict of interview %s: stage %s is not current",
                               record.get("id"), stage.get("id"))
                continue
            self.machine.apply_stage_result(process, stage["id"], stage["passed"])
            replayed += 1
        return replayed

    def _refresh_interview_snapshots(self) -> int:
        updated = 0
        processes = {p.id: p.to_record() for p in self._valid_processes()}
        for record in self.store.list(INTERVIEWS):
            process = processes.get(record.get("processId"))
            if process is None:
                logger.warning("Interview %s references missing or unrepaired process %s", record.get("id"), record.get("processId"))
                continue
            stage_id = (record.get("stage") or {}).get("id")
            authoritative = next((s for s in process["stages"] if s.get("id") == stage_id), None)
            if authoritative is None:
                logger.warning("Interview %s references stage %s missing from its process", record.get("id"), stage_id)
                continue

            migrated = dict(record)
            migrated.pop("jobPosting", None)
            migrated["stage"] = authoritative
            if migrated != record:
                self.store.put(INTERVIEWS, migrated)
                updated += 1
        return updated

    def _valid_processes(self) -> List[InterviewProcess]:
        """Stored processes that load cleanly; skipped records are left out"""
        processes = []
        for record in self.store.list(INTERVIEW_PROCESSES):
            try:
                processes.append(InterviewProcess.from_record(record))
            except ValueError:
                continue
        return processes

    def _find_process(self, process_id: Optional[str]) -> Optional[InterviewProcess]:
        return next((p for p in self._valid_processes() if p.id == process_id), None)


if __name__ == "__main__":
    configure_logging(get_settings())
    RecordMigrations().migrate_existing_data()
