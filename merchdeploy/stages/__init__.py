"""Deployment pipeline stages — registry mapping stage_id to stage class.

Usage::

    from merchdeploy.stages import StageContext, get_stage

    with StageContext(config) as context:
        result = get_stage("s2_publish").run_stage(context)
"""

from __future__ import annotations

from merchdeploy.stages.base import (
    BaseStage,
    StageContext,
    StageExecutionError,
    StagePreconditionError,
)
from merchdeploy.stages.s1_fund import FundStage
from merchdeploy.stages.s2_publish import PublishStage
from merchdeploy.stages.s3_initialize import InitializeStage
from merchdeploy.stages.s4_verify import VerifyStage, match_created_objects

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "s1_fund": FundStage,
    "s2_publish": PublishStage,
    "s3_initialize": InitializeStage,
    "s4_verify": VerifyStage,
}

# Order in which an operator runs the stages.
STAGE_ORDER: list[str] = [
    "s1_fund",
    "s2_publish",
    "s3_initialize",
    "s4_verify",
]


def get_stage(stage_id: str) -> BaseStage:
    """Instantiate and return a stage by its ``stage_id``.

    Raises ``KeyError`` if the stage_id is not registered.
    """
    try:
        cls = STAGE_REGISTRY[stage_id]
    except KeyError:
        raise KeyError(
            f"Unknown stage_id {stage_id!r}. "
            f"Registered stages: {sorted(STAGE_REGISTRY.keys())}"
        ) from None
    return cls()


__all__ = [
    "BaseStage",
    "StageContext",
    "StageExecutionError",
    "StagePreconditionError",
    "STAGE_REGISTRY",
    "STAGE_ORDER",
    "get_stage",
    "FundStage",
    "PublishStage",
    "InitializeStage",
    "VerifyStage",
    "match_created_objects",
]
