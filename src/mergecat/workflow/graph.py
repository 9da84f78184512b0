"""Graph workflow definition."""

from __future__ import annotations

from pydantic_graph import Graph

from mergecat.github.models import PullRequest
from mergecat.workflow.nodes import (
    CheckRollup,
    Classify,
    Elevate,
    MergePull,
    Outcome,
    Probe,
    PullState,
    RollForward,
    Services,
)


def create_workflow() -> Graph[PullState, Services, Outcome]:
    """Create the per-pull-request graph.

    Probe → Classify → [Elevate → CheckRollup → RollForward] →
        MergePull
    """
    return Graph(
        nodes=(
            Probe,
            Classify,
            Elevate,
            CheckRollup,
            RollForward,
            MergePull,
        ),
        state_type=PullState,
        run_end_type=Outcome,
    )


async def process_pull(pr: PullRequest, services: Services) -> Outcome:
    """Drive one pull request to a terminal outcome.

    Raises:
        MergeFailed: The platform merge failed after every retry
        RollupConflict: Rolling the release head into main failed
        MergecatError: Any other operational failure
    """
    workflow = create_workflow()
    state = PullState(pr=pr)
    with services.logger.span(f"PR #{pr.number}", pr=pr.number):
        async with workflow.iter(Probe(), state=state, deps=services) as run:
            async for _node in run:
                pass
    return run.result.output


__all__ = ["create_workflow", "process_pull"]
