"""Workflow lookups and transition path resolution."""

from collections import deque
from typing import Dict, List, Optional

from ..exceptions import NoPathError, NotFoundError
from ..models.environment import Workflow, WorkflowStep


def find_workflow(workflows: List[Workflow], codename: str) -> Workflow:
    """Find a workflow by codename (case-insensitive)."""
    for workflow in workflows:
        if workflow.codename.lower() == codename.lower():
            return workflow
    available = ", ".join(w.codename for w in workflows)
    raise NotFoundError(
        f"Workflow with codename '{codename}' does not exist in target environment. "
        f"Available workflows are ({len(workflows)}): {available}"
    )


def find_step(workflow: Workflow, codename: str) -> WorkflowStep:
    """Find a step, including the published, scheduled and archived steps, by codename (case-insensitive)."""
    step = _get_step(workflow, codename)
    if step is None:
        available = ", ".join(s.codename for s in workflow.all_steps)
        raise NotFoundError(
            f"Workflow step with codename '{codename}' does not exist in workflow '{workflow.codename}'. "
            f"Steps are: {available}"
        )
    return step


def workflow_for_content_type(workflows: List[Workflow], content_type_id: str) -> Optional[Workflow]:
    """Find the workflow scoped to a content type, falling back to the default workflow."""
    for workflow in workflows:
        if content_type_id in workflow.content_type_ids:
            return workflow
    for workflow in workflows:
        if workflow.codename == "default":
            return workflow
    return workflows[0] if workflows else None


def shortest_path(workflow: Workflow, from_step: str, to_step: str) -> List[str]:
    """
    Find the shortest sequence of transitions between two steps.

    Args:
        workflow: Workflow graph
        from_step: Codename of the current step
        to_step: Codename of the desired step

    Returns:
        Step codenames to move through, excluding from_step and including
        to_step. Empty when both steps are the same.

    Raises:
        NoPathError: If to_step cannot be reached from from_step
    """
    start = _get_step(workflow, from_step)
    goal = _get_step(workflow, to_step)
    if start is None or goal is None:
        raise NoPathError(workflow.codename, from_step, to_step)
    if start.codename == goal.codename:
        return []

    steps = {s.codename: s for s in workflow.all_steps}
    parents: Dict[str, Optional[str]] = {start.codename: None}
    queue = deque([start.codename])

    while queue:
        current = queue.popleft()
        if current == goal.codename:
            break
        for next_step in steps[current].transitions_to:
            if next_step not in parents:
                parents[next_step] = current
                queue.append(next_step)

    if goal.codename not in parents:
        raise NoPathError(workflow.codename, from_step, to_step)

    path = []
    step = goal.codename
    while step != start.codename:
        path.append(step)
        step = parents[step]
    path.reverse()
    return path


def _get_step(workflow: Workflow, codename: str) -> Optional[WorkflowStep]:
    for step in workflow.all_steps:
        if step.codename.lower() == codename.lower():
            return step
    return None
