# recruitflow/services/stage_catalog.py - initial stage lists for new interview processes

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from recruitflow.core.config import get_settings
from recruitflow.core.exceptions import ValidationError
from recruitflow.models.interview import InterviewStage, StageStatus, StageType


class StageConfig(BaseModel):
    """One position in a process configuration request"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    type: StageType
    generate_questions: bool = False


DEFAULT_STAGE_CONFIGS = [
    StageConfig(name="Technical Interview", type=StageType.TECHNICAL),
    StageConfig(name="Behavioral Interview", type=StageType.BEHAVIORAL),
    StageConfig(name="Final Interview", type=StageType.FINAL),
]


def default_stage_configs(count: int = 3) -> List[StageConfig]:
    """The product's default stage templates, first `count` of them"""
    _check_count(count)
    return [config.model_copy() for config in DEFAULT_STAGE_CONFIGS[:count]]


def _check_count(count: int, max_stages: Optional[int] = None):
    max_stages = max_stages or get_settings().MAX_STAGES
    if not 1 <= count <= max_stages:
        raise ValidationError(
            f"An interview process needs between 1 and {max_stages} stages, got {count}",
            entity="interview_process",
        )


def build_stages(configs: Sequence[StageConfig], max_stages: Optional[int] = None) -> List[InterviewStage]:
    """
    Build the ordered stage list for a new process.

    Each stage gets a fresh id, ``order`` equal to its position, status
    ``pending``, no verdict and no questions.
    """
    _check_count(len(configs), max_stages)

    stages = []
    for position, config in enumerate(configs):
        name = config.name.strip()
        if not name:
            raise ValidationError(f"Stage {position + 1} needs a name", entity="interview_process")
        stages.append(InterviewStage(
            name=name,
            type=config.type,
            order=position,
            status=StageStatus.PENDING,
        ))
    return stages


def stages_needing_questions(configs: Sequence[StageConfig], stages: Sequence[InterviewStage]) -> List[str]:
    """Ids of the built stages whose config asked for pre-generated questions"""
    return [stage.id for config, stage in zip(configs, stages) if config.generate_questions]
