"""Background jobs."""

from bizdirectory.scheduler.reconciler import ReconciliationResult, RatingReconciler

__all__ = [
    "RatingReconciler",
    "ReconciliationResult",
]
