# scripts/seed_clinic.py
#  to run the script, run the following command:
#  python scripts/seed_clinic.py --admin-email admin@example.com --admin-password <password>

"""
Clinic Seeding Script
Creates the tables, the first admin account (signup only offers doctor and
receptionist) and a starter medicine catalogue.
"""
import argparse
import asyncio
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from app.database.connection import async_session_maker, create_all_tables
from app.system_models.medicine_model.medicine_model import Medicine
from app.users.security import get_password_hash
from app.users.user_models.user_model import User

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STARTER_MEDICINES = [
    ("Paracetamol", "Analgesic", "500mg", "Tablet", "Cipla", "1.50"),
    ("Amoxicillin", "Antibiotic", "250mg", "Capsule", "Sun Pharma", "4.20"),
    ("Cetirizine", "Antihistamine", "10mg", "Tablet", "Dr. Reddy's", "2.00"),
    ("Omeprazole", "Antacid", "20mg", "Capsule", "Lupin", "3.75"),
    ("Ibuprofen", "Analgesic", "400mg", "Tablet", "Abbott", "2.10"),
    ("Azithromycin", "Antibiotic", "500mg", "Tablet", "Zydus", "12.00"),
    ("Metformin", "Antidiabetic", "500mg", "Tablet", "USV", "1.80"),
    ("Salbutamol", "Bronchodilator", "100mcg", "Inhaler", "Cipla", "145.00"),
]


async def ensure_admin(email: str, password: str, full_name: str) -> None:
    async with async_session_maker() as db:
        existing = (await db.execute(select(User).where(User.email == email))).scalars().first()
        if existing:
            logger.info(f"✓ Admin {email} already exists")
            return
        db.add(
            User(
                email=email,
                hashed_password=get_password_hash(password),
                full_name=full_name,
                role="admin",
                is_active=True,
                is_verified=True,
            )
        )
        await db.commit()
        logger.info(f"✓ Created admin {email}")


async def seed_medicines() -> int:
    async with async_session_maker() as db:
        known = set((await db.execute(select(Medicine.name))).scalars().all())
        added = 0
        for name, category, strength, form, manufacturer, price in STARTER_MEDICINES:
            if name in known:
                continue
            db.add(
                Medicine(
                    name=name,
                    category=category,
                    strength=strength,
                    form=form,
                    manufacturer=manufacturer,
                    price=Decimal(price),
                    stock_quantity=100,
                    reorder_level=20,
                )
            )
            added += 1
        await db.commit()
        return added


async def main(args) -> None:
    print("=======================================================================\n")
    await create_all_tables()
    logger.info("✓ Tables ready")
    if args.admin_email:
        await ensure_admin(args.admin_email.strip().lower(), args.admin_password, args.admin_name)
    if not args.skip_medicines:
        added = await seed_medicines()
        logger.info(f"✓ Added {added} medicines")
    print("=======================================================================\n")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the clinic database")
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    parser.add_argument("--admin-name", default="Clinic Admin")
    parser.add_argument("--skip-medicines", action="store_true")
    args = parser.parse_args()
    if args.admin_email and not args.admin_password:
        parser.error("--admin-password is required with --admin-email")
    asyncio.run(main(args))
