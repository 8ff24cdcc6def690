"""Colorized, section-aware rendering of Junos configuration diffs.

A Junos text diff is a sequence of section headers such as
``[edit system]`` followed by ``+``/``-``/context lines. Sections listed in
``omitted_sections`` (large generated lists) are collapsed into a single
``[omitting ...]`` notice.
"""
import re
from typing import Iterable, Optional

from rich.console import Console
from rich.text import Text

from .documents import DiffDocument

# Section path characters: words, dots, hyphens, spaces, plus the slashes and
# colons that appear in interface names and prefixes.
SECTION_HEADER = re.compile(r"^\[([\w\-. /:]*)\]$")

DEFAULT_OMITTED_SECTIONS = (
    "edit policy-options as-path-group",
    "edit policy-options prefix-list",
)

STYLE_HEADER = "magenta"
STYLE_OMITTED = "yellow"
STYLE_ADDED = "green"
STYLE_REMOVED = "red"


class DiffRenderer:
    """Render DiffDocuments onto a rich Console."""

    def __init__(
        self,
        console: Optional[Console] = None,
        omitted_sections: Iterable[str] = DEFAULT_OMITTED_SECTIONS,
        color: bool = True,
    ):
        self.console = console or Console(highlight=False)
        self.omitted_sections = tuple(omitted_sections)
        self.color = color

    def is_omitted(self, section: str) -> bool:
        return any(section.startswith(prefix) for prefix in self.omitted_sections)

    def _styled(self, line: str, style: str) -> Text:
        return Text(line, style=style if self.color else "")

    def render_lines(self, diff: DiffDocument) -> list[Text]:
        """Filter and style the diff body, one Text per output line."""
        rendered = []
        skipping = False

        for line in diff.body.split("\n"):
            match = SECTION_HEADER.match(line)
            if match:
                section = match.group(1)
                skipping = self.is_omitted(section)
                if skipping:
                    rendered.append(self._styled(f"[omitting {section}]", STYLE_OMITTED))
                else:
                    rendered.append(self._styled(line, STYLE_HEADER))
            elif skipping:
                continue
            elif line.startswith("+"):
                rendered.append(self._styled(line, STYLE_ADDED))
            elif line.startswith("-"):
                rendered.append(self._styled(line, STYLE_REMOVED))
            else:
                rendered.append(Text(line))

        return rendered

    def render_plain(self, diff: DiffDocument) -> str:
        """Rendered diff without any styling."""
        return "\n".join(text.plain for text in self.render_lines(diff))

    def render(self, diff: DiffDocument) -> None:
        """Print the rendered diff."""
        for text in self.render_lines(diff):
            self.console.print(text, soft_wrap=True)
