import os, sys, pathlib

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tappio.services.qr import code_url, make_qr

# Usage: python scripts/make_qr.py <CODE> [OUT.png]
# Writes a QR PNG pointing at <BASE_URL>/c/<CODE>

def main():
    if len(sys.argv) < 2 or not sys.argv[1].strip():
        print("Usage: make_qr.py <CODE> [OUT.png]")
        sys.exit(1)
    code = sys.argv[1].strip().upper()
    out = sys.argv[2] if len(sys.argv) > 2 else f"qr-code-{code}.png"
    url = code_url(os.environ.get('BASE_URL', 'http://localhost:5000'), code)
    make_qr(url, out)
    print("URL:", url)
    print("QR written to", out)

if __name__ == "__main__":
    main()
