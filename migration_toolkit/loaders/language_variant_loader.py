"""Importer of language variants: element values and workflow state."""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import NotFoundError, RemoteNotFoundError
from ..models.environment import Workflow, WorkflowStep
from ..models.record import MigrationItem
from ..services.transforms import ElementTransformer
from ..services.workflows import find_step, find_workflow, shortest_path, workflow_for_content_type
from .base import BaseImporter, ImportAction

logger = logging.getLogger(__name__)


class LanguageVariantImporter(BaseImporter[MigrationItem]):
    """
    Upserts language variants and moves them to their workflow step.

    A variant is always written into the first step of its workflow and then
    walked, one transition call per hop, along the shortest path to the step
    it had in the source.
    """

    entity = "language_variants"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.transformer = ElementTransformer(self.context.environment, self.context.table)

    def label(self, item: MigrationItem) -> str:
        return f"{item.system.codename} ({item.system.language})"

    def error_details(self, item: MigrationItem) -> dict:
        return {"codename": item.system.codename, "language": item.system.language}

    def import_one(self, item: MigrationItem) -> ImportAction:
        codename = item.system.codename
        language = item.system.language
        environment = self.context.environment

        if environment.get_language(language) is None:
            raise NotFoundError(f"Language '{language}' does not exist in target environment")

        workflow = self._get_workflow(item)
        target_step = find_step(workflow, item.system.workflow_step)
        first_step = workflow.first_step
        path = shortest_path(workflow, first_step.codename, target_step.codename)

        elements = self.transformer.transform_item(item)

        existing = self._get_existing_variant(codename, language)
        if existing is not None:
            self._prepare_existing_variant(item, existing, workflow)

        self.client.upsert_variant(codename, language, {
            "elements": elements,
            "workflow": {
                "workflow_identifier": {"codename": workflow.codename},
                "step_identifier": {"codename": first_step.codename},
            },
        })

        for step_codename in path:
            self._move_to_step(item, workflow, step_codename)

        self._apply_schedule(item, workflow, target_step)

        return ImportAction.CREATED if existing is None else ImportAction.UPDATED

    def _get_workflow(self, item: MigrationItem) -> Workflow:
        workflows = self.context.environment.workflows
        if item.system.workflow:
            return find_workflow(workflows, item.system.workflow)

        content_type = self.context.environment.get_content_type(item.system.type)
        workflow = workflow_for_content_type(workflows, content_type.id if content_type else "")
        if workflow is None:
            raise NotFoundError("Target environment has no workflows")
        return workflow

    def _get_existing_variant(self, codename: str, language: str) -> Optional[Dict[str, Any]]:
        try:
            return self.client.get_variant(codename, language)
        except RemoteNotFoundError:
            return None

    def _prepare_existing_variant(self, item: MigrationItem, variant: Dict[str, Any], workflow: Workflow) -> None:
        """
        Make an existing variant editable.

        Pending schedules are cancelled first. Published variants then get a
        new version and archived ones are moved back to the first step.
        """
        step_id = ((variant.get("workflow") or {}).get("step_identifier") or {}).get("id")
        schedule = variant.get("schedule") or {}
        workflows = self.context.environment.workflows
        codename = item.system.codename
        language = item.system.language

        if any(w.scheduled_step.id == step_id for w in workflows):
            logger.debug(f"Cancelling scheduled publish of {self.label(item)}")
            self.client.cancel_scheduled_publish(codename, language)
        if schedule.get("unpublish_time"):
            logger.debug(f"Cancelling scheduled unpublish of {self.label(item)}")
            self.client.cancel_scheduled_unpublish(codename, language)

        if any(w.published_step.id == step_id for w in workflows):
            logger.debug(f"Creating new version of published variant {self.label(item)}")
            self.client.create_new_version(codename, language)
        elif any(w.archived_step.id == step_id for w in workflows):
            logger.debug(f"Moving archived variant {self.label(item)} to step '{workflow.first_step.codename}'")
            self.client.change_workflow(codename, language, workflow.codename, workflow.first_step.codename)

    def _move_to_step(self, item: MigrationItem, workflow: Workflow, step_codename: str) -> None:
        codename = item.system.codename
        language = item.system.language

        if step_codename == workflow.published_step.codename:
            self.client.publish_variant(codename, language)
        elif step_codename == workflow.scheduled_step.codename:
            # Scheduling is applied afterwards from the item's schedule
            pass
        else:
            # Regular steps and the archived step are both reached by changing the workflow step
            self.client.change_workflow(codename, language, workflow.codename, step_codename)

    def _apply_schedule(self, item: MigrationItem, workflow: Workflow, target_step: WorkflowStep) -> None:
        schedule = item.schedule
        codename = item.system.codename
        language = item.system.language

        if schedule.unpublish_time:
            self.client.unpublish_variant(
                codename, language, schedule.unpublish_time, schedule.unpublish_display_timezone
            )
        elif schedule.publish_time and target_step.codename == workflow.scheduled_step.codename:
            self.client.publish_variant(
                codename, language, schedule.publish_time, schedule.publish_display_timezone
            )


def importable_variants(items: List[MigrationItem]) -> List[MigrationItem]:
    """Language variants imported on their own; components are inlined into their owners."""
    return [item for item in items if not item.is_component]
