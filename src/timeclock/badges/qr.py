from __future__ import annotations

import io
from typing import IO, Optional, Union

import qrcode
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from .urls import extract_profile_id


def qr_png(data: str, *, box_size: int = 10, border: int = 2) -> io.BytesIO:
    """Render ``data`` as a QR code PNG in a rewound buffer."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def decode_qr(stream: Union[IO[bytes], bytes]) -> Optional[str]:
    """Text of the first QR code in an image, or None."""
    if isinstance(stream, (bytes, bytearray)):
        stream = io.BytesIO(stream)
    img = Image.open(stream).convert("RGB")
    decoded = pyzbar_decode(img)
    if not decoded:
        return None
    return decoded[0].data.decode("utf-8").strip()


def profile_id_from_image(stream: Union[IO[bytes], bytes]) -> Optional[str]:
    return extract_profile_id(decode_qr(stream))
