"""Tests for the index page event."""

from uploader.core.lifespan import State
from uploader.events.index_page import IndexPageEvent, render_index


def test_form_posts_to_upload_url(settings) -> None:
    page = render_index(settings)

    assert f'action="{settings.upload_url}"' in page
    assert 'enctype="multipart/form-data"' in page
    assert 'name="pwd"' in page
    assert 'name="file"' in page


def test_shows_storage_details(settings) -> None:
    page = render_index(settings.model_copy(update={"MAX_FILE_SIZE_MB": 2.5}))

    assert str(settings.UPLOAD_PATH) in page
    assert "2.5 MB" in page


def test_upload_path_is_escaped(settings, tmp_path) -> None:
    page = render_index(settings.model_copy(update={"UPLOAD_PATH": tmp_path / "<drop>"}))

    assert "&lt;drop&gt;" in page
    assert "<drop>" not in page


async def test_event_renders_once(settings) -> None:
    event = IndexPageEvent()
    event.state = State(settings=settings)

    assert await event.startup() == render_index(settings)
    assert not IndexPageEvent.has_shutdown()
