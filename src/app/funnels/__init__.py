"""Funnel content to CRM custom value mapping and synchronization.

Pipeline: Field Store -> normalizer.merge_funnel_content -> mappers ->
aggregator.aggregate (+ inference fallback) -> crm.PushEngine.
"""

from src.app.funnels.aggregator import aggregate
from src.app.funnels.email_html import convert_email_to_html, is_already_html
from src.app.funnels.hashing import compute_content_hash
from src.app.funnels.normalizer import merge, merge_funnel_content

__all__ = [
    "aggregate",
    "compute_content_hash",
    "convert_email_to_html",
    "is_already_html",
    "merge",
    "merge_funnel_content",
]
