"""URL-template request builder for generic paginated JSON APIs."""

from dataclasses import dataclass
from urllib.parse import quote

from core.errors import ConfigurationError
from core.types import PageRequest

PLACEHOLDERS = ("{source}", "{offset}", "{page_size}")


@dataclass(frozen=True)
class TemplateRequests:
    """Build requests from a URL template.

    Example:
        TemplateRequests("https://api.example.com/{source}/items?startAt={offset}&maxResults={page_size}")
    """

    template: str

    def __post_init__(self) -> None:
        if "{offset}" not in self.template:
            raise ConfigurationError(
                "URL template must contain an {offset} placeholder",
                field="template",
                value=self.template,
            )

    @property
    def name(self) -> str:
        return "template"

    def build(self, source_id: str, offset: int, page_size: int) -> PageRequest:
        url = (
            self.template.replace("{source}", quote(source_id, safe=""))
            .replace("{offset}", str(offset))
            .replace("{page_size}", str(page_size))
        )
        return PageRequest(source_id=source_id, offset=offset, page_size=page_size, url=url)
