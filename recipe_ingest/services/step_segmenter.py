"""Split free-form instruction text into ordered recipe steps."""

import logging
import re
from dataclasses import dataclass

from recipe_ingest.config import get_settings

logger = logging.getLogger(__name__)

SUMMARY_MAX_LENGTH = 255

# "1." / "2)" / "Step 3:" at the start of the text or after whitespace.
# The lookahead rejects decimals ("2.5") and times ("10.30").
STEP_MARKER_PATTERN = re.compile(
    r"(?:^|(?<=\s))(?:step\s*(?P<step>\d{1,3})\s*[:.)-]?|(?P<num>\d{1,3})[.)])(?=\s|$)",
    re.IGNORECASE,
)

PARAGRAPH_SPLIT_PATTERN = re.compile(r"(?:\r?\n)+")


@dataclass
class ParsedStep:
    """One segmented instruction step."""

    step_number: int
    summary: str
    description: str


class StepSegmenter:
    """Segment instruction blocks by numbered markers or paragraphs."""

    def __init__(self, max_steps: int | None = None) -> None:
        self.max_steps = max_steps if max_steps is not None else get_settings().max_recipe_steps

    def segment(self, raw: str | None) -> list[ParsedStep]:
        """Split an instruction block into steps numbered from 1.

        Examples:
        - "1. Preheat oven. 2. Mix batter." -> ["Preheat oven.", "Mix batter."]
        - "Chop onions.\\n\\nFry until golden." -> two steps
        - "Mix everything and bake." -> one step with the full text
        """
        if not raw or not raw.strip():
            return []

        texts = self._split_on_markers(raw)
        if texts is None:
            texts = self._split_on_paragraphs(raw)

        if len(texts) > self.max_steps:
            logger.warning(
                f"Instructions have {len(texts)} steps; keeping the first {self.max_steps}"
            )
            texts = texts[: self.max_steps]

        return [
            ParsedStep(step_number=index, summary=text[:SUMMARY_MAX_LENGTH], description=text)
            for index, text in enumerate(texts, start=1)
        ]

    def _split_on_markers(self, raw: str) -> list[str] | None:
        """Split on a run of sequential step markers, or None if there is none.

        Candidates must count up from 1, so stray numbers such as
        "bake at 350. Then" do not break a step.
        """
        markers = []
        expected = 1
        for match in STEP_MARKER_PATTERN.finditer(raw):
            number = int(match.group("step") or match.group("num"))
            if number == expected:
                markers.append(match)
                expected += 1

        if not markers:
            return None
        starts_with_marker = not raw[: markers[0].start()].strip()
        if len(markers) < 2 and not starts_with_marker:
            return None

        texts = []
        preamble = raw[: markers[0].start()].strip()
        if preamble:
            texts.append(preamble)
        for index, marker in enumerate(markers):
            end = markers[index + 1].start() if index + 1 < len(markers) else len(raw)
            text = raw[marker.end() : end].strip()
            if text:
                texts.append(text)
        return texts or None

    def _split_on_paragraphs(self, raw: str) -> list[str]:
        paragraphs = [part.strip() for part in PARAGRAPH_SPLIT_PATTERN.split(raw)]
        meaningful = [part for part in paragraphs if re.search(r"\w", part)]
        if len(meaningful) >= 2:
            return meaningful
        return [raw.strip()]
