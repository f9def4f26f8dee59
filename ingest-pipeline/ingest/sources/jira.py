"""Jira REST search request builder.

Pages through all issues of one Jira project:

    GET {base_url}/rest/api/2/search
        ?jql=project=SPARK&startAt=100&maxResults=50
        &expand=changelog,renderedFields&fields=summary,description,...

Jira wraps the page in {"startAt": ..., "total": ..., "issues": [...]}.
"""

from dataclasses import dataclass, field

from config.constants import JIRA_BASE_URL, JIRA_EXPAND, JIRA_FIELDS, JIRA_SEARCH_PATH
from core.types import PageRequest


@dataclass(frozen=True)
class JiraSearchRequests:
    """Build Jira search requests for a project key."""

    base_url: str = JIRA_BASE_URL
    fields: list[str] = field(default_factory=lambda: list(JIRA_FIELDS))
    expand: list[str] = field(default_factory=lambda: list(JIRA_EXPAND))

    @property
    def name(self) -> str:
        return "jira"

    @property
    def search_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{JIRA_SEARCH_PATH}"

    def build(self, source_id: str, offset: int, page_size: int) -> PageRequest:
        params = {
            "jql": f"project={source_id}",
            "startAt": str(offset),
            "maxResults": str(page_size),
        }
        if self.expand:
            params["expand"] = ",".join(self.expand)
        if self.fields:
            params["fields"] = ",".join(self.fields)

        return PageRequest(
            source_id=source_id,
            offset=offset,
            page_size=page_size,
            url=self.search_url,
            params=params,
        )
