"""Team coordination decision engine."""

from teamengine.engine.collaboration import CollaborationEngine
from teamengine.engine.conflict import (
    ConflictResolver,
    calculate_severity,
    classify_conflict,
    find_mediator,
)
from teamengine.engine.events import EventBus, EventType
from teamengine.engine.knowledge import KnowledgeGapAnalyzer, find_expert, transfer_type_for
from teamengine.engine.metrics import (
    ActivityMetricsSource,
    MetricsSampler,
    MetricsSource,
    NullMetricsSource,
    workload_metrics,
)
from teamengine.engine.review import (
    ReviewerAssigner,
    availability_bucket,
    estimate_review_minutes,
    required_expertise,
)
from teamengine.engine.tasks import TaskCoordinator, estimate_completion

__all__ = [
    "ActivityMetricsSource",
    "CollaborationEngine",
    "ConflictResolver",
    "EventBus",
    "EventType",
    "KnowledgeGapAnalyzer",
    "MetricsSampler",
    "MetricsSource",
    "NullMetricsSource",
    "ReviewerAssigner",
    "TaskCoordinator",
    "availability_bucket",
    "calculate_severity",
    "classify_conflict",
    "estimate_completion",
    "estimate_review_minutes",
    "find_expert",
    "find_mediator",
    "required_expertise",
    "transfer_type_for",
    "workload_metrics",
]
