"""Business logic services."""

from folio.services.heatmap import HeatmapAggregator
from folio.services.ingestion import IngestionResult, IngestionService
from folio.services.lead_scoring import LeadScore, LeadScorer, score_lead
from folio.services.lead_service import LeadService, RescorePolicy
from folio.services.session_stats import SessionStatsAggregator
from folio.services.site_analytics import SiteAnalyticsService

__all__ = [
    "HeatmapAggregator",
    "IngestionResult",
    "IngestionService",
    "LeadScore",
    "LeadScorer",
    "score_lead",
    "LeadService",
    "RescorePolicy",
    "SessionStatsAggregator",
    "SiteAnalyticsService",
]
