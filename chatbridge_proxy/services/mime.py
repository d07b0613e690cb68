"""
Data URL helpers.

`data:<mimeType>;base64,<payload>` is how the front-end embeds images; the
providers want either the full URL back or the MIME type and payload apart.
"""
import re
from typing import Any, Tuple

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

DATA_URL_PREFIX_RE = re.compile(r"^data:([^;,]+);base64,")


def extract_mime_type(data_url: Any) -> str:
    """Returns the declared MIME type, or image/jpeg when the prefix is absent or malformed."""
    if not isinstance(data_url, str):
        return DEFAULT_IMAGE_MIME_TYPE
    m = DATA_URL_PREFIX_RE.match(data_url)
    if not m:
        return DEFAULT_IMAGE_MIME_TYPE
    return m.group(1)


def split_data_url(data_url: Any) -> Tuple[str, str]:
    if not isinstance(data_url, str):
        return DEFAULT_IMAGE_MIME_TYPE, ""
    _, sep, payload = data_url.partition(",")
    if not sep:
        # 没有分隔符：整个字符串按 base64 原样透传
        payload = data_url
    return extract_mime_type(data_url), payload


def build_data_url(mime_type: str, base64_data: str) -> str:
    return f"data:{mime_type};base64,{base64_data}"
