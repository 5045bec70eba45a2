"""
QR code rendering for student IDs.

The QR payload is the student ID itself, which is what the check-in
desk scans back into ``POST /validate``.  Decoding scanned images is
left to the scanning client.
"""

import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


class QRCodeService:
    """Encode student IDs as PNG QR codes."""

    def __init__(self, box_size: int = 10, border: int = 4) -> None:
        self.box_size = box_size
        self.border = border

    def render_png(self, payload: str) -> bytes:
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        image = qr.make_image()
        buffer = io.BytesIO()
        image.save(buffer)
        return buffer.getvalue()
