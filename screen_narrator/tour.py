"""Tour scripts: the pages to visit and the narration planned for each."""

import json
from dataclasses import dataclass

from screen_narrator.constants import DEFAULT_PERSONA
from screen_narrator.errors import TourError
from screen_narrator.models import TextSegment


@dataclass(frozen=True)
class Page:
    url: str
    segments: tuple[TextSegment, ...]
    animate: bool = False   # drift down and back instead of running segment cues


@dataclass(frozen=True)
class Tour:
    persona: str
    pages: tuple[Page, ...]


def _is_scroll_target(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _parse_page(index: int, raw: dict) -> Page:
    if not isinstance(raw, dict):
        raise TourError(f"Page {index} must be an object")
    url = str(raw.get("url", "")).strip()
    if not url:
        raise TourError(f"Page {index} missing required field: url")

    if "segments" in raw:
        items = raw["segments"]
        if not isinstance(items, list) or not items:
            raise TourError(f"Page {index} 'segments' must be a non-empty array")
        segments = []
        for j, item in enumerate(items, start=1):
            text = str(item.get("text", "")).strip() if isinstance(item, dict) else ""
            if not text:
                raise TourError(f"Page {index} segment {j} has empty text")
            target = item.get("scrollTarget", "top")
            if not _is_scroll_target(target):
                raise TourError(f"Page {index} segment {j} has an invalid scrollTarget: {target!r}")
            segments.append(TextSegment(text=text, scroll_target=target.strip()))
    else:
        narration = str(raw.get("narration", "")).strip()
        if not narration:
            raise TourError(f"Page {index} needs 'narration' or 'segments'")
        segments = [TextSegment(text=narration, scroll_target="top")]
        animate = raw.get("animate", True)
        if not isinstance(animate, bool):
            raise TourError(f"Page {index} 'animate' must be true or false")
        return Page(url=url, segments=tuple(segments), animate=animate)

    return Page(url=url, segments=tuple(segments))


def parse_tour(data: dict) -> Tour:
    if not isinstance(data, dict):
        raise TourError("Tour must be a JSON object")
    pages = data.get("pages")
    if not isinstance(pages, list) or not pages:
        raise TourError("Tour 'pages' must be a non-empty array")
    return Tour(
        persona=str(data.get("persona") or DEFAULT_PERSONA),
        pages=tuple(_parse_page(i, raw) for i, raw in enumerate(pages, start=1)),
    )


def load_tour(path: str) -> Tour:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise TourError(f"Tour not found: {path}") from e
    except json.JSONDecodeError as e:
        raise TourError(f"Tour JSON is invalid: {e}") from e
    return parse_tour(data)
