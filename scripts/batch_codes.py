#!/usr/bin/env python3
import os, sys, csv, io
import argparse
import pathlib
import requests
from PIL import Image, ImageDraw, ImageFont

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tappio.services.qr import make_qr_bytes

# Batch-generate NFC codes by calling /admin/api/codes
# Outputs: PNGs, CSV, and optional A4 PDF sheet with printable cards

def parse_args():
    p = argparse.ArgumentParser(description='Batch generate NFC codes using the admin API')
    p.add_argument('--base-url', default=os.environ.get('BASE_URL','http://localhost:5000'), help='Service base URL')
    p.add_argument('--admin-key', default=os.environ.get('ADMIN_API_KEY'), help='X-Admin-Key (env ADMIN_API_KEY)')
    p.add_argument('--type', dest='code_type', choices=['profile', 'review'], default='profile', help='code type')
    p.add_argument('--count', type=int, default=int(os.environ.get('COUNT','10')), help='number of codes to generate')
    p.add_argument('--batch', default=os.environ.get('BATCH_ID') or 'batch', help='batch id/prefix for output folder')
    p.add_argument('--out', default='out', help='output directory root (default: out)')
    p.add_argument('--no-pdf', action='store_true', help='skip generating a combined A4 PDF sheet')
    return p.parse_args()


def ensure_dir(p: pathlib.Path):
    p.mkdir(parents=True, exist_ok=True)


def generate(base_url: str, key: str, code_type: str, count: int) -> list[dict]:
    url = f"{base_url.rstrip('/')}/admin/api/codes"
    headers = {
        'X-Admin-Key': key,
        'Accept': 'application/json',
        'Content-Type': 'application/json',
    }
    r = requests.post(url, headers=headers, json={'count': count, 'code_type': code_type}, timeout=30)
    if r.status_code != 200:
        raise RuntimeError(f"generate failed {r.status_code}: {r.text[:200]}")
    return r.json()['codes']


def _text_width(draw: ImageDraw.ImageDraw, text: str, font) -> int:
    left, _, right, _ = draw.textbbox((0, 0), text, font=font)
    return right - left


def make_card(qr_png_bytes: bytes, title: str, subtitle: str, footer: str, card_px=(800, 1000)) -> Image.Image:
    W, H = card_px
    bg = Image.new('RGB', (W, H), color=(255, 255, 255))
    draw = ImageDraw.Draw(bg)
    qr = Image.open(io.BytesIO(qr_png_bytes)).convert('RGB')
    qr_size = min(W - 120, int(H * 0.5))
    qr = qr.resize((qr_size, qr_size), Image.Resampling.LANCZOS)
    qr_x = (W - qr_size) // 2
    qr_y = 180
    bg.paste(qr, (qr_x, qr_y))
    try:
        font_title = ImageFont.truetype('Arial.ttf', 42)
        font_sub = ImageFont.truetype('Arial.ttf', 28)
        font_foot = ImageFont.truetype('Arial.ttf', 24)
    except OSError:
        font_title = ImageFont.load_default()
        font_sub = ImageFont.load_default()
        font_foot = ImageFont.load_default()
    draw.text(((W - _text_width(draw, title, font_title)) // 2, 30), title, fill=(0, 0, 0), font=font_title)
    draw.text(((W - _text_width(draw, subtitle, font_sub)) // 2, 100), subtitle, fill=(30, 30, 30), font=font_sub)
    draw.text(((W - _text_width(draw, footer, font_foot)) // 2, qr_y + qr_size + 40), footer, fill=(60, 60, 60), font=font_foot)
    return bg


def save_pdf_sheet(images: list[Image.Image], out_pdf: pathlib.Path, cols=2, rows=3, margin=50):
    if not images:
        return
    # A4 at 300 DPI ≈ 2480x3508 px
    page_w, page_h = 2480, 3508
    card_w = (page_w - margin * (cols + 1)) // cols
    card_h = (page_h - margin * (rows + 1)) // rows
    per_page = cols * rows
    pages = []
    for start in range(0, len(images), per_page):
        page = Image.new('RGB', (page_w, page_h), color=(255, 255, 255))
        for i, card in enumerate(images[start:start + per_page]):
            r, c = divmod(i, cols)
            x = margin + c * (card_w + margin)
            y = margin + r * (card_h + margin)
            page.paste(card.resize((card_w, card_h), Image.Resampling.LANCZOS), (x, y))
        pages.append(page)
    pages[0].save(out_pdf, save_all=True, append_images=pages[1:], resolution=300)


def main():
    args = parse_args()
    if not args.admin_key:
        print('ERROR: missing --admin-key or env ADMIN_API_KEY', file=sys.stderr)
        sys.exit(1)
    out_root = pathlib.Path(args.out) / f"{args.batch}"
    png_dir = out_root / 'png'
    ensure_dir(png_dir)

    csv_path = out_root / 'codes.csv'
    pdf_path = out_root / 'codes.pdf'

    print(f"→ Generating {args.count} {args.code_type} codes on {args.base_url}…")
    try:
        codes = generate(args.base_url, args.admin_key, args.code_type, args.count)
    except (RuntimeError, requests.RequestException) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    rows = []
    cards = []
    title = 'Tap or scan me' if args.code_type == 'profile' else 'Leave us a review'
    for i, c in enumerate(codes):
        png_bytes = make_qr_bytes(c['code_url'])
        png_path = png_dir / f"qr-code-{c['code']}.png"
        with open(png_path, 'wb') as f:
            f.write(png_bytes)
        rows.append({'code': c['code'], 'url': c['code_url'], 'png': str(png_path.relative_to(out_root))})
        cards.append(make_card(png_bytes, title, f"Code {c['code']}", c['code_url']))
        print(f"[{i+1}/{len(codes)}] code {c['code']}")

    with open(csv_path, 'w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=['code', 'url', 'png'])
        w.writeheader()
        for r in rows:
            w.writerow(r)

    if not args.no_pdf:
        save_pdf_sheet(cards, pdf_path)
        print(f"✅ Wrote PDF: {pdf_path}")

    print(f"✅ Done. CSV: {csv_path}\nPNG dir: {png_dir}")


if __name__ == '__main__':
    main()
