"""Pure constants for the ingestion pipeline. No side effects at import time."""

from pathlib import Path

# === Directories ===
# Use absolute path relative to project root (parent of ingest-pipeline/)
_PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = _PROJECT_ROOT / "data"
RAW_DIR = DATA_DIR / "raw"
PROGRESS_FILE = _PROJECT_ROOT / "progress.json"

# === Rate limit ===
MIN_REQUEST_INTERVAL = 0.2  # 200ms between requests (5 req/sec max)

# === Timeouts (seconds) ===
DEFAULT_REQUEST_TIMEOUT = 30.0

# === Pagination ===
DEFAULT_PAGE_SIZE = 50

# === Retry ===
MAX_FETCH_ATTEMPTS = 5  # Total attempts per page, first try included
BACKOFF_BASE_DELAY = 2.0
BACKOFF_MULTIPLIER = 2.0
BACKOFF_MAX_DELAY = 60.0
RATE_LIMIT_DEFAULT_WAIT = 60.0  # Used when a 429 carries no Retry-After
RATE_LIMIT_MAX_WAIT = 300.0  # Upper bound on any single retry wait

# === Response parsing ===
# Object fields that may wrap the record array, checked in order
RECORD_KEYS = ("issues", "records", "values", "items", "results", "data")

# === Jira ===
JIRA_BASE_URL = "https://issues.apache.org/jira"
JIRA_SEARCH_PATH = "/rest/api/2/search"
DEFAULT_SOURCES = ["SPARK", "KAFKA", "HADOOP"]

# Every field needed downstream: comments, priority, assignee, labels, timestamps
JIRA_FIELDS = [
    "summary",
    "description",
    "status",
    "priority",
    "assignee",
    "reporter",
    "created",
    "updated",
    "resolutiondate",
    "labels",
    "components",
    "fixVersions",
    "comment",
    "issuetype",
    "project",
    "resolution",
    "watches",
    "timeoriginalestimate",
    "timespent",
    "aggregatetimespent",
    "aggregatetimeoriginalestimate",
]
JIRA_EXPAND = ["changelog", "renderedFields"]
