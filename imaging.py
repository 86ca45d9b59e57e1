import base64
import binascii
import re

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URL_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[^,]*)?;base64,', re.IGNORECASE)


def encode_image(data):
    """Base64-encode raw image bytes for an inline Gemini part."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("Image data must be bytes, got {}".format(type(data).__name__))
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_image_payload(payload, default_mime=DEFAULT_MIME_TYPE):
    """Decode a base64 image sent by the browser.

    Accepts either a bare base64 string or a full data URL
    ("data:image/png;base64,...."). Returns (bytes, mime_type).
    Raises ValueError when the payload is empty or not valid base64.
    """
    if not payload or not str(payload).strip():
        raise ValueError("No image provided")

    payload = str(payload).strip()
    mime_type = default_mime
    match = _DATA_URL_RE.match(payload)
    if match:
        if match.group("mime"):
            mime_type = match.group("mime").lower()
        payload = payload[match.end():]
    elif 'base64,' in payload:
        payload = payload.split('base64,', 1)[1]

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image is not valid base64: {}".format(e)) from e
    if not data:
        raise ValueError("No image provided")
    return data, mime_type
