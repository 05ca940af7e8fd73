"""
Initialize the database schema
Creates all tables defined in models and, when BOOTSTRAP_ADMIN_EMAIL and
BOOTSTRAP_ADMIN_PASSWORD are set, the first ADMIN account.
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.auth import hash_password
from core.database import SessionLocal, init_db
from models.user import User


def bootstrap_admin(email: str, password: str, name: str = "Administrator") -> bool:
    """Create the admin user unless that email is already registered. True when a row was added."""
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            return False
        db.add(User(name=name, email=email, password=hash_password(password), role="ADMIN"))
        db.commit()
        return True
    finally:
        db.close()


def init_database():
    """Create all tables in the database"""
    print("Creating tables...")

    try:
        init_db()
        print("✓ Tables created successfully!")
        print("\nCreated tables:")
        print("  - users")
        print("  - products")
        print("  - product_variants")
        print("  - discounts")
        print("  - discount_products")
        print("  - discount_variants")
        print("  - shipping_options")
        print("  - orders")
        print("  - order_items")

        email = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "").strip()
        password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "")
        if email and password:
            if bootstrap_admin(email, password):
                print(f"✓ Admin {email} created")
            else:
                print(f"- Admin {email} already exists")

    except Exception as e:
        print(f"✗ Error creating tables: {e}")
        sys.exit(1)


if __name__ == "__main__":
    init_database()
