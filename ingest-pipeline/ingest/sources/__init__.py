"""Request builders for paginated sources."""

from .base import RequestBuilder
from .jira import JiraSearchRequests
from .template import TemplateRequests

__all__ = [
    "RequestBuilder",
    "JiraSearchRequests",
    "TemplateRequests",
]
