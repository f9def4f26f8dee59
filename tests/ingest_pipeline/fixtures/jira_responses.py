"""Response fixtures for ingestion tests.

These fixtures mimic the structure of Jira REST search responses
(/rest/api/2/search).
"""

import json


def make_issues(start: int, count: int, project: str = "SPARK") -> list[dict]:
    """Issues numbered by their absolute offset in the project."""
    return [
        {
            "id": str(10000 + i),
            "key": f"{project}-{i + 1}",
            "fields": {
                "summary": f"Issue {i + 1}",
                "status": {"name": "Open"},
                "priority": {"name": "Major"},
            },
        }
        for i in range(start, start + count)
    ]


def search_page(start: int, count: int, total: int, project: str = "SPARK") -> dict:
    """One page of a Jira search response."""
    return {
        "expand": "schema,names",
        "startAt": start,
        "maxResults": 50,
        "total": total,
        "issues": make_issues(start, count, project),
    }


def as_body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


# Search response (first page of a 120-issue project)
JIRA_SEARCH_PAGE = search_page(0, 50, total=120)

# Search response past the last issue
JIRA_SEARCH_EXHAUSTED = {
    "expand": "schema,names",
    "startAt": 150,
    "maxResults": 50,
    "total": 120,
    "issues": [],
}

# Error body for an unknown project (HTTP 400)
JIRA_ERROR_UNKNOWN_PROJECT = {
    "errorMessages": ["The value 'NOPE' does not exist for the field 'project'."],
    "errors": {},
}

# Error body returned with HTTP 429
JIRA_RATE_LIMITED = {
    "message": "Rate limit exceeded",
}

# HTML maintenance page served with HTTP 200
HTML_MAINTENANCE_PAGE = b"<html><body><h1>Jira is down for maintenance</h1></body></html>"
