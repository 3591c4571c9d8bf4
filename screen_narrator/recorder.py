"""Live phase: drive the browser through a tour while the page is being recorded."""

import os

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from screen_narrator.constants import (
    ELEMENT_TIMEOUT_MS,
    NAVIGATION_TIMEOUT_MS,
    PAGE_SETTLE_MS,
    SCROLL_ANIMATION_PX,
    SCROLL_ANIMATION_SHARE,
    SCROLL_ANIMATION_STEPS,
    VIDEOS_SUBDIR,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
)
from screen_narrator.errors import ActionFailed, SessionError
from screen_narrator.marks import MarkLog, append_mark, now_ms
from screen_narrator.scheduler import SubSegmentScheduler
from screen_narrator.session import Session, save_session
from screen_narrator.timing import join_segments, map_segment_timings, parse_scroll_by, scroll_animation
from screen_narrator.tts import generate_clip
from screen_narrator.tour import Tour

SCROLL_TOP_JS = "() => window.scrollTo({ top: 0, behavior: 'smooth' })"
SCROLL_BOTTOM_JS = """
() => {
    const height = Math.max(document.body.scrollHeight, document.documentElement.scrollHeight);
    window.scrollTo({ top: height, behavior: 'smooth' });
}
"""
SCROLL_INTO_VIEW_JS = "(el) => el.scrollIntoView({ behavior: 'smooth', block: 'center' })"
SCROLL_BY_JS = "(y) => window.scrollBy(0, y)"
ANIMATION_SCRIPT = """async (page) => {{
  const stepDelay = {step_ms};
  const stepDistance = {step_px};
  for (let i = 0; i < {steps}; i++) {{
    await page.evaluate((y) => window.scrollBy(0, y), stepDistance);
    await page.waitForTimeout(stepDelay);
  }}
  await page.waitForTimeout({pause_ms});
  for (let i = 0; i < {steps}; i++) {{
    await page.evaluate((y) => window.scrollBy(0, y), -stepDistance);
    await page.waitForTimeout(stepDelay);
  }}
}}"""


class BrowserDriver:
    """Chromium with video recording on, used as a context manager.

    Leaving the block always releases the browser. The raw video is only
    moved into place by save_recording(); if the block exits before that,
    the partial video is discarded.
    """

    def __init__(self, video_dir: str, headless: bool = False,
                 viewport: tuple[int, int] = (VIEWPORT_WIDTH, VIEWPORT_HEIGHT),
                 playwright_factory=sync_playwright):
        self.video_dir = video_dir
        self.headless = headless
        self.viewport = {"width": viewport[0], "height": viewport[1]}
        self.playwright_factory = playwright_factory
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None

    def __enter__(self):
        os.makedirs(self.video_dir, exist_ok=True)
        self._playwright = self.playwright_factory().start()
        try:
            self.browser = self._playwright.chromium.launch(headless=self.headless)
            self.context = self.browser.new_context(
                viewport=self.viewport,
                record_video_dir=self.video_dir,
                record_video_size=self.viewport,
            )
            self.page = self.context.new_page()
            self.page.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
        except Exception:
            self._release(discard_video=True)
            raise
        return self

    def __exit__(self, exc_type, exc, tb):
        self._release(discard_video=True)
        return False

    def navigate(self, url: str) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise ActionFailed(f"Navigation to {url} failed: {e}", stage="navigate") from e
        try:
            self.page.wait_for_load_state("networkidle", timeout=NAVIGATION_TIMEOUT_MS)
        except PlaywrightError:
            print(f"  [warn] {url}: networkidle timed out, continuing")
        self.page.wait_for_timeout(PAGE_SETTLE_MS)

    def perform(self, target: str) -> None:
        """Scroll to "top", "bottom", by a scroll-by offset, or bring the element matching target into view."""
        dy = parse_scroll_by(target)
        try:
            if dy is not None:
                self.page.evaluate(SCROLL_BY_JS, dy)
            elif target == "top":
                self.page.evaluate(SCROLL_TOP_JS)
            elif target == "bottom":
                self.page.evaluate(SCROLL_BOTTOM_JS)
            else:
                self.page.locator(target).first.evaluate(SCROLL_INTO_VIEW_JS, timeout=ELEMENT_TIMEOUT_MS)
        except PlaywrightError as e:
            raise ActionFailed(f"Scroll to '{target}' failed: {e}", stage="cue") from e

    def save_recording(self, destination: str) -> str:
        """Close the page so the video is finalized, then move it to destination atomically."""
        video = self.page.video if self.page is not None else None
        if video is None:
            raise SessionError("Browser has no video handle", stage="record")

        self.page.close()
        self.page = None
        self.context.close()
        self.context = None

        partial = destination + ".partial"
        video.save_as(partial)
        os.replace(partial, destination)
        video.delete()
        return destination

    def _release(self, discard_video: bool) -> None:
        video = None
        if self.page is not None:
            video = self.page.video
            try:
                self.page.close()
            except PlaywrightError:
                pass
            self.page = None
        if self.context is not None:
            try:
                self.context.close()
            except PlaywrightError:
                pass
            self.context = None
        if discard_video and video is not None:
            try:
                video.delete()
            except PlaywrightError:
                pass
        if self.browser is not None:
            try:
                self.browser.close()
            except PlaywrightError:
                pass
            self.browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None


def animation_script(clip_duration_ms: int) -> str:
    """Browser script playing the same drift as scroll_animation(), for hand-driven sessions."""
    leg_ms = clip_duration_ms * SCROLL_ANIMATION_SHARE
    return ANIMATION_SCRIPT.format(
        step_ms=round(leg_ms / SCROLL_ANIMATION_STEPS),
        step_px=f"{SCROLL_ANIMATION_PX / SCROLL_ANIMATION_STEPS:g}",
        steps=SCROLL_ANIMATION_STEPS,
        pause_ms=round(clip_duration_ms - 2 * leg_ms),
    )


def default_driver(session: Session, headless: bool = False) -> BrowserDriver:
    return BrowserDriver(os.path.join(session.directory, VIDEOS_SUBDIR), headless=headless)


def record_tour(
    session: Session,
    tour: Tour,
    synthesize,
    driver,
    clock=now_ms,
    scheduler: SubSegmentScheduler | None = None,
) -> MarkLog:
    """Record every page of the tour into session.recording_path.

    Per page: navigate, synthesize its narration, mark, then hold the page
    for exactly the narration length while its cues fire. Synthesis happens
    before the mark so its latency never lands inside a good segment.

    Returns the filled mark log.
    """
    if session.recording_start_ms is not None:
        raise SessionError("Session already has a recording. Start a new session.", stage="record")

    log = MarkLog(session.durations, clock=clock)
    with driver:
        scheduler = scheduler or SubSegmentScheduler(driver.perform)
        session.recording_start_ms = log.start()
        save_session(session)
        print(f"Recording started at T0: {session.recording_start_ms}")

        for clip_number, page in enumerate(tour.pages, start=1):
            print(f"Processing page {clip_number}: {page.url}")
            try:
                driver.navigate(page.url)
            except ActionFailed as e:
                print(f"  [warn] {e}")

            clip = generate_clip(session, clip_number, join_segments(page.segments), synthesize)
            if page.animate:
                timings = scroll_animation(clip.duration_ms)
            else:
                timings = map_segment_timings(list(page.segments), clip.character_start_times)

            mark = log.mark(clip_number)
            append_mark(session.marks_path, mark)
            print(f"  Marked clip {clip_number} at offset {mark.offset_ms}ms")

            scheduler.run(timings, clip.duration_ms)
            print(f"  Completed segment {clip_number}")

        driver.save_recording(session.recording_path)
        print(f"Video saved: {session.recording_path}")

    return log
