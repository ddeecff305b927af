"""QR code images printed at each station."""

from __future__ import annotations

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H


def station_scan_url(frontend_url: str, station_id: int) -> str:
    """URL a phone opens after scanning the code of ``station_id``."""
    return f"{frontend_url.rstrip('/')}/scan-station/{station_id}"


def qr_png_data_url(data: str) -> str:
    """Render ``data`` as a QR code and return it as a ``data:image/png`` URL.

    High error correction keeps printed codes readable when partly covered.

    Raises
    ------
    qrcode.exceptions.DataOverflowError
        If ``data`` does not fit in a QR code.
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
