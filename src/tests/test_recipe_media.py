"""Tests for recipe step media helpers."""

import pytest

from src.utils import recipe_media


class TestVideoLinks:
    """Video id extraction and player URLs."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        ],
    )
    def test_youtube_forms(self, url):
        assert recipe_media.extract_video_id(url) == "dQw4w9WgXcQ"
        assert recipe_media.format_video_url(url) == "https://www.youtube.com/embed/dQw4w9WgXcQ"
        assert (
            recipe_media.get_video_thumbnail(url)
            == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
        )

    def test_vimeo_link(self):
        url = "https://vimeo.com/76979871"

        assert recipe_media.extract_video_id(url) == "76979871"
        assert recipe_media.format_video_url(url) == "https://player.vimeo.com/video/76979871"
        assert recipe_media.get_video_thumbnail(url) == ""

    @pytest.mark.parametrize("url", [None, "", "https://example.com/clip.mp4"])
    def test_unrecognized_link(self, url):
        assert recipe_media.extract_video_id(url) is None

    def test_unrecognized_link_left_as_is(self):
        url = "https://example.com/clip.mp4"

        assert recipe_media.format_video_url(url) == url
        assert recipe_media.get_video_thumbnail(url) == ""


class TestTimestamps:
    """Timestamp parsing and formatting."""

    @pytest.mark.parametrize("value", ["5", "45", "1:05", "12:30", "1:02:03", "23:59:59"])
    def test_valid(self, value):
        assert recipe_media.is_valid_timestamp(value)

    @pytest.mark.parametrize("value", ["", "1:75", "24:00:00", "abc", "1:2:3:4"])
    def test_invalid(self, value):
        assert not recipe_media.is_valid_timestamp(value)

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "00:00"), (75, "01:15"), (3599, "59:59"), (3725, "01:02:05")],
    )
    def test_format(self, seconds, expected):
        assert recipe_media.format_timestamp(seconds) == expected


class TestValidateMediaUrls:
    """Per-step media checks."""

    def test_steps_without_media(self):
        assert recipe_media.validate_media_urls([{"description": "Sear"}, {}]) == []

    def test_valid_media(self):
        steps = [{"media": [
            {"type": "video", "url": "https://vimeo.com/76979871", "timestamp": "0:45"},
            {"type": "image", "url": "https://cdn.example.com/sear.jpg", "caption": "Crust"},
            {"type": "document", "url": "haccp.pdf"},
        ]}]

        assert recipe_media.validate_media_urls(steps) == []

    def test_reports_position_of_each_problem(self):
        steps = [
            {"media": [{"type": "image", "url": "https://cdn.example.com/a.jpg"}]},
            {"media": [
                {"type": "video", "url": "https://example.com/clip.mp4"},
                {"type": "image", "url": "ftp://files/b.jpg", "timestamp": "nope"},
                {"type": "audio", "url": "https://cdn.example.com/c.mp3"},
            ]},
        ]

        assert recipe_media.validate_media_urls(steps) == [
            "Step 2, Media 1: Invalid video URL",
            "Step 2, Media 2: Invalid image URL",
            "Step 2, Media 2: Invalid timestamp format",
            "Step 2, Media 3: Media type must be one of image, video, document",
        ]
