import qrcode
import qrcode.image.svg
import io


def code_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/c/{code}"

def make_qr(url: str, path: str):
    img = qrcode.make(url)
    img.save(path)

def make_qr_bytes(url: str) -> bytes:
    """Return QR PNG bytes for the provided URL."""
    img = qrcode.make(url)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()

def make_qr_svg(url: str) -> bytes:
    """Return a standalone SVG document with a one-module quiet zone."""
    img = qrcode.make(url, image_factory=qrcode.image.svg.SvgPathImage, border=1)
    buf = io.BytesIO()
    img.save(buf)
    return buf.getvalue()
