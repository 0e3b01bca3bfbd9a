"""Migration configuration and import run models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import os
import uuid

DEFAULT_BASE_URL = "https://manage.kontent.ai/v2"


class MigrationStatus(str, Enum):
    """Status of a migration run or one of its stages."""
    PENDING = "pending"
    RESOLVING_CONTEXT = "resolving_context"
    IMPORTING = "importing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


@dataclass
class EnvironmentConfig:
    """Connection settings of a content environment."""
    environment_id: str
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (the API key is never written out)."""
        return {
            "environment_id": self.environment_id,
            "base_url": self.base_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], api_key_env: Optional[str] = None) -> "EnvironmentConfig":
        api_key = data.get("api_key")
        if not api_key and api_key_env:
            api_key = os.environ.get(api_key_env)
        return cls(
            environment_id=data.get("environment_id", ""),
            api_key=api_key,
            base_url=data.get("base_url", DEFAULT_BASE_URL),
        )


@dataclass
class RetryConfig:
    """Retry settings for remote calls."""
    max_attempts: int = 3
    delta_backoff: float = 1.0  # seconds
    add_jitter: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "delta_backoff": self.delta_backoff,
            "add_jitter": self.add_jitter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryConfig":
        return cls(
            max_attempts=data.get("max_attempts", 3),
            delta_backoff=data.get("delta_backoff", 1.0),
            add_jitter=data.get("add_jitter", True),
        )


@dataclass
class MigrationConfig:
    """Configuration for exporting, importing or migrating content."""
    name: str = "migration"

    # Environments
    source: Optional[EnvironmentConfig] = None
    target: Optional[EnvironmentConfig] = None

    # Export filters
    languages: List[str] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)
    item_codenames: List[str] = field(default_factory=list)

    # Execution options
    concurrency: int = 3
    skip_failed_items: bool = True
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Output
    output_dir: Optional[str] = None
    archive_path: Optional[str] = None
    save_report: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "source": self.source.to_dict() if self.source else None,
            "target": self.target.to_dict() if self.target else None,
            "languages": self.languages,
            "content_types": self.content_types,
            "item_codenames": self.item_codenames,
            "concurrency": self.concurrency,
            "skip_failed_items": self.skip_failed_items,
            "retry": self.retry.to_dict(),
            "output_dir": self.output_dir,
            "archive_path": self.archive_path,
            "save_report": self.save_report,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        source = data.get("source")
        target = data.get("target")
        return cls(
            name=data.get("name", "migration"),
            source=EnvironmentConfig.from_dict(source, "MIGRATION_SOURCE_API_KEY") if source else None,
            target=EnvironmentConfig.from_dict(target, "MIGRATION_TARGET_API_KEY") if target else None,
            languages=data.get("languages", []),
            content_types=data.get("content_types", []),
            item_codenames=data.get("item_codenames", []),
            concurrency=data.get("concurrency", 3),
            skip_failed_items=data.get("skip_failed_items", True),
            retry=RetryConfig.from_dict(data.get("retry", {})),
            output_dir=data.get("output_dir"),
            archive_path=data.get("archive_path"),
            save_report=data.get("save_report", True),
        )


@dataclass
class ImportStage:
    """Outcome of one import stage for one kind of entity."""
    name: str
    entity: str
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.skipped + self.failed

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "entity": self.entity,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": self.errors,
        }


@dataclass
class ImportResult:
    """A complete import run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    stages: List[ImportStage] = field(default_factory=list)

    # Statistics
    total_created: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    total_failed: int = 0

    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "stages": [s.to_dict() for s in self.stages],
            "total_created": self.total_created,
            "total_updated": self.total_updated,
            "total_skipped": self.total_skipped,
            "total_failed": self.total_failed,
            "errors": self.errors,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_stage(self, name: str, entity: str) -> ImportStage:
        """Add a new stage to the run."""
        stage = ImportStage(name=name, entity=entity)
        self.stages.append(stage)
        return stage

    def get_stage(self, entity: str) -> Optional[ImportStage]:
        """Get a stage by the entity kind it imports."""
        for stage in self.stages:
            if stage.entity == entity:
                return stage
        return None

    def update_totals(self) -> None:
        """Update total statistics from stages."""
        self.total_created = sum(s.created for s in self.stages)
        self.total_updated = sum(s.updated for s in self.stages)
        self.total_skipped = sum(s.skipped for s in self.stages)
        self.total_failed = sum(s.failed for s in self.stages)
