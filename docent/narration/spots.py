"""
Building the spot sequence of a tour, and choosing the video behind each spot.

Video priority for spot i:
1. the visitor's override for the item (VideoOverrides)
2. the item's own video field
3. the theme playlist, cycled by i
4. the per-theme default, or the intro video for spot 0
"""

from docent.content.normalize import extract_video_url, unescape_newlines
from docent.content.types import Item, Theme
from docent.storage import KeyValueStore

from .types import Spot

OVERRIDES_KEY = "itemVideoOverrides"
EMPTY_SCRIPT = "(설명 없음)"

INTRO_VIDEO = "/videos/hamoIntroduce.mp4"
THEME_DEFAULT_VIDEOS = {
    "imjin_war": "/videos/hamowar_start_video.mp4",
    "jinju_museum": "/videos/hamowar_start_video.mp4",
    "gonryongpo": "/videos/hamowar_start_video.mp4",
}
FALLBACK_THEME = "jinju_museum"

THEME_PLAYLIST_KEYS = ("sectionVideos", "section_videos", "videos", "videoList")
THEME_SECTION_KEYS = ("sections", "sliderSections", "slides")
ITEM_PLAYLIST_KEYS = ("sectionVideos", "section_videos", "videoList", "videos")


class VideoOverrides:
    """Per-item video URLs chosen by the visitor, kept in durable storage."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def all(self) -> dict[str, str]:
        data = self.store.get(OVERRIDES_KEY, {})
        return dict(data) if isinstance(data, dict) else {}

    def get(self, item_id: str) -> str | None:
        return self.all().get(item_id) or None

    def set(self, item_id: str, url: str | None) -> None:
        """Store url for item_id. A falsy url removes the override."""
        overrides = self.all()
        if url:
            overrides[item_id] = url
        else:
            overrides.pop(item_id, None)
        self.store.set(OVERRIDES_KEY, overrides)


def choose_script(item: Item, age: str) -> str:
    if age == "child":
        chosen = item.script_child or item.script_general
    else:
        chosen = item.script_general or item.script_child
    text = unescape_newlines(chosen or item.item_desc).strip()
    return text or EMPTY_SCRIPT


def build_spots(
    theme: Theme,
    items: list[Item],
    age: str,
    overrides: VideoOverrides | None = None,
    playlist: list[str] | None = None,
) -> list[Spot]:
    """
    Build the ordered spots of a tour.

    With items, every item is one spot narrating its age-appropriate script.
    Without items, each non-blank line of the theme's long description is a spot.
    """
    if playlist is None:
        playlist = collect_section_playlist(theme, items)

    if items:
        return [
            Spot(
                index=i,
                title=item.item_name,
                text=choose_script(item, age),
                video_src=resolve_video_source(i, item, theme.id, overrides, playlist),
                item_id=item.item_id,
            )
            for i, item in enumerate(items)
        ]

    paragraphs = [p for p in theme.long_description.split("\n") if p.strip()]
    return [
        Spot(
            index=i,
            title=f"{theme.title} {i + 1}",
            text=text,
            video_src=resolve_video_source(i, None, theme.id, overrides, playlist),
        )
        for i, text in enumerate(paragraphs)
    ]


def collect_section_playlist(theme: Theme, items: list[Item]) -> list[str]:
    """Ordered, de-duplicated video URLs the theme and its items advertise."""
    collected: dict[str, None] = {}

    def push(candidate) -> None:
        url = extract_video_url(candidate)
        if url:
            collected.setdefault(url, None)

    def push_all(values) -> None:
        if isinstance(values, list):
            for value in values:
                push(value)

    raw = theme.raw or {}
    for key in THEME_PLAYLIST_KEYS:
        push_all(raw.get(key))
    nested_raw = raw.get("raw") if isinstance(raw.get("raw"), dict) else {}
    for key in THEME_PLAYLIST_KEYS:
        push_all(nested_raw.get(key))

    sections = None
    for source in (raw, nested_raw):
        for key in THEME_SECTION_KEYS:
            if isinstance(source.get(key), list):
                sections = source[key]
                break
        if sections is not None:
            break
    for section in sections or []:
        push(section)
        if isinstance(section, dict):
            push(
                section.get("video")
                or section.get("videoUrl")
                or section.get("video_url")
            )
            push(section.get("media") or section.get("media_url"))
            push_all(section.get("videos") or section.get("videoList"))

    for item in items:
        item_raw = item.raw or {}
        for key in ITEM_PLAYLIST_KEYS:
            if item_raw.get(key):
                push_all(item_raw[key])
                break

    return list(collected)


def resolve_video_source(
    index: int,
    item: Item | None,
    theme_id: str,
    overrides: VideoOverrides | None = None,
    playlist: list[str] | None = None,
) -> str:
    """Pick the video for spot index."""
    if item is not None:
        if overrides is not None:
            override = overrides.get(item.item_id)
            if override:
                return override
        if item.video:
            return item.video

    if playlist:
        return playlist[index % len(playlist)]

    if index == 0:
        return INTRO_VIDEO
    return THEME_DEFAULT_VIDEOS.get(theme_id, THEME_DEFAULT_VIDEOS[FALLBACK_THEME])
