"""Load screening rooms and a few identity-store customers into a local database.

Both tables are owned by other systems in production; this only exists so a
development instance has something to schedule and book against.
"""
from boxoffice.db.base import Base
from boxoffice.db.session import engine, SessionLocal
from boxoffice.models.room import Room
from boxoffice.models.customer import Customer

ROOMS = [
    ("Screen 1", 80),
    ("Screen 2", 80),
    ("Screen 3", 120),
]

CUSTOMERS = [
    ("alice@example.com", True),
    ("bob@example.com", False),
    ("carol@example.com", True),
]


def seed_reference_data():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        for name, seat_count in ROOMS:
            if db.query(Room).filter(Room.name == name).first():
                print(f"Room already exists: {name}")
                continue
            db.add(Room(name=name, seat_count=seat_count))
            print(f"Adding room: {name} ({seat_count} seats)")

        for email, subscribed in CUSTOMERS:
            if db.query(Customer).filter(Customer.email == email).first():
                print(f"Customer already exists: {email}")
                continue
            db.add(Customer(email=email, promotion_subscription=subscribed))
            print(f"Adding customer: {email}")

        db.commit()
    finally:
        db.close()

    print("Reference data ready.")


if __name__ == "__main__":
    seed_reference_data()
