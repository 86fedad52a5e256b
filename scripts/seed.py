import os, sys, pathlib
# Ensure project root is on PYTHONPATH when running directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tappio import create_app
from tappio.models import Profile
from tappio.services.auth import ensure_admin, register_user
from tappio.services.codes import generate_codes, claim_code, activate_profile_code
from tappio.services.qr import code_url
from tappio.services.secret_store import set_secret

ADMIN_EMAIL = os.environ.get('SEED_ADMIN_EMAIL', 'admin@example.com')
ADMIN_PASSWORD = os.environ.get('SEED_ADMIN_PASSWORD', 'admin-password')
DEMO_EMAIL = os.environ.get('SEED_DEMO_EMAIL', 'demo@example.com')
DEMO_PASSWORD = os.environ.get('SEED_DEMO_PASSWORD', 'demo-password')

app = create_app()
with app.app_context():
    admin = ensure_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
    demo = Profile.query.filter_by(email=DEMO_EMAIL).first() or register_user(DEMO_EMAIL, DEMO_PASSWORD)

    profile_codes = generate_codes(5, admin.id, 'profile')
    review_codes = generate_codes(3, admin.id, 'review')

    # One active card for the demo user
    claim_code(demo, profile_codes[0].code)
    activate_profile_code(demo, profile_codes[0].code)

    if os.environ.get('GOOGLE_PLACES_API_KEY'):
        set_secret('GOOGLE_PLACES_API_KEY', os.environ['GOOGLE_PLACES_API_KEY'])

    base = app.config.get('BASE_URL')
    print('Admin:', ADMIN_EMAIL)
    print('Demo user:', DEMO_EMAIL)
    for c in profile_codes + review_codes:
        print(f"{c.type:8} {c.code}  {code_url(base, c.code)}")
