"""Put an email on the allow-list and, if that user has logged in before, make them admin.

    python scripts/bootstrap_admin.py someone@example.com
"""
import sys

from contentboard.db.base import SessionLocal
from contentboard.db.models import Role, User
from contentboard.db.store import Store, normalize_email
from contentboard.deps import init_db

if len(sys.argv) != 2:
    sys.exit(__doc__)

email = normalize_email(sys.argv[1])
init_db()
db = SessionLocal()
try:
    store = Store(db)
    store.add_allowed_email(email, invited_by="bootstrap")
    print(f"allowed {email}")
    user = db.query(User).filter(User.email == email).first()
    if user:
        user.role = Role.ADMIN.value
        db.commit()
        print(f"promoted {email} to admin")
    else:
        print("no user yet; log in once and run this again to promote")
finally:
    db.close()
