"""Index page rendered once at startup."""

from html import escape

from uploader.core.lifespan import BaseEvent
from uploader.core.settings import Settings

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
</head>
<body>
  <h1>{title}</h1>
  <p>Files are stored in <code>{path}</code>, up to {max_file_size} MB each.</p>
  <form action="{upload_url}" method="post" enctype="multipart/form-data">
    <p><input type="password" name="pwd" placeholder="password" required></p>
    <p><input type="file" name="file" required></p>
    <p><button type="submit">Upload</button></p>
  </form>
</body>
</html>
"""


def render_index(settings: Settings) -> str:
    return INDEX_TEMPLATE.format(
        title=escape(settings.API_NAME),
        path=escape(str(settings.UPLOAD_PATH)),
        upload_url=escape(settings.upload_url, quote=True),
        max_file_size=round(settings.max_file_size / 1024 / 1024, 1),
    )


class IndexPageEvent(BaseEvent[str]):
    name = "index_page"

    async def startup(self) -> str:
        return render_index(self.state.settings)
