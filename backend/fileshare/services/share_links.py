# fileshare/services/share_links.py
from html import escape
from urllib.parse import quote

from fileshare.core.schemas.files import EmbedSnippets, ShareUrls
from fileshare.models.file_record import FileRecord

# MIME prefixes a browser can render inside an iframe
IFRAME_MIME_PREFIXES = ("image/", "text/", "application/pdf", "video/", "audio/")


def build_urls(base_url: str, record: FileRecord) -> ShareUrls:
    file_url = f"{base_url.rstrip('/')}/files/{record.id}"
    return ShareUrls(
        view=f"{file_url}?action=view",
        download=f"{file_url}?action=download",
    )


def build_embed(urls: ShareUrls, record: FileRecord) -> EmbedSnippets:
    """HTML snippets for embedding the file, picked by MIME type class"""
    name = escape(record.original_name)
    view_url = escape(urls.view)
    mime_type = record.mime_type.lower()

    image = None
    if mime_type.startswith("image/"):
        image = f'<img src="{view_url}" alt="{name}" style="max-width: 100%; height: auto;" />'

    iframe = None
    if mime_type.startswith(IFRAME_MIME_PREFIXES):
        iframe = f'<iframe src="{view_url}" width="100%" height="400" frameborder="0"></iframe>'

    link = f'<a href="{escape(urls.download)}" target="_blank">{name}</a>'
    return EmbedSnippets(image=image, iframe=iframe, link=link)


def content_disposition(record: FileRecord, download: bool) -> str:
    if not download:
        return "inline"
    name = "".join(ch for ch in record.original_name if ch.isprintable())
    name = name.replace("\\", "_").replace('"', "'")
    try:
        name.encode("latin-1")
    except UnicodeEncodeError:
        fallback = name.encode("ascii", "replace").decode("ascii")
        return f'attachment; filename="{fallback}"; filename*=UTF-8\'\'{quote(record.original_name)}'
    return f'attachment; filename="{name}"'
