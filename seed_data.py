#!/usr/bin/env python3

from datetime import time
from decimal import Decimal

from templebook.auth.utils import get_password_hash
from templebook.database import Base, SessionLocal, engine
from templebook.enums import Role
from templebook.models import Temple, TimeSlot, User

ACCOUNTS = [
    {
        "email": "admin@templebook.com",
        "password": "admin123",
        "name": "System Admin",
        "phone": "+91 9876543210",
        "role": Role.SUPERUSER,
    },
    {
        "email": "board@templebook.com",
        "password": "temple123",
        "name": "Temple Board Manager",
        "phone": "+91 9876543211",
        "role": Role.TEMPLE_BOARD,
    },
    {
        "email": "user@templebook.com",
        "password": "user123",
        "name": "Devotee User",
        "phone": "+91 9876543212",
        "role": Role.USER,
    },
]

TEMPLES = [
    {
        "name": "Shri Siddhivinayak Temple",
        "description": "One of the most famous Ganesh temples in Mumbai, dedicated to Lord Ganesha.",
        "location": "Prabhadevi, Mumbai",
        "city": "Mumbai",
        "state": "Maharashtra",
        "timings": "5:30 AM - 10:00 PM",
        "daily_ticket_limit": 500,
        "ticket_price": Decimal("0"),
    },
    {
        "name": "Shri Kashi Vishwanath Temple",
        "description": "Temple of Lord Shiva on the western bank of the Ganga, one of the twelve Jyotirlingas.",
        "location": "Varanasi, Uttar Pradesh",
        "city": "Varanasi",
        "state": "Uttar Pradesh",
        "timings": "3:00 AM - 11:00 PM",
        "daily_ticket_limit": 1000,
        "ticket_price": Decimal("50"),
    },
    {
        "name": "Tirumala Venkateswara Temple",
        "description": "Hill temple at Tirupati dedicated to Lord Venkateswara.",
        "location": "Tirumala, Andhra Pradesh",
        "city": "Tirupati",
        "state": "Andhra Pradesh",
        "timings": "2:30 AM - 1:30 AM (Next Day)",
        "daily_ticket_limit": 5000,
        "ticket_price": Decimal("300"),
    },
    {
        "name": "Golden Temple (Harmandir Sahib)",
        "description": "The holiest Gurdwara of Sikhism, known for its golden facade and langar.",
        "location": "Amritsar, Punjab",
        "city": "Amritsar",
        "state": "Punjab",
        "timings": "Open 24 Hours",
        "daily_ticket_limit": 2000,
        "ticket_price": Decimal("0"),
    },
    {
        "name": "Jagannath Temple",
        "description": "Char Dham temple of Lord Jagannath, famous for the annual Rath Yatra.",
        "location": "Puri, Odisha",
        "city": "Puri",
        "state": "Odisha",
        "timings": "5:00 AM - 11:00 PM",
        "daily_ticket_limit": 800,
        "ticket_price": Decimal("25"),
    },
    {
        "name": "Meenakshi Amman Temple",
        "description": "Historic Dravidian temple on the Vaigai River dedicated to Goddess Meenakshi.",
        "location": "Madurai, Tamil Nadu",
        "city": "Madurai",
        "state": "Tamil Nadu",
        "timings": "5:00 AM - 12:30 PM, 4:00 PM - 10:00 PM",
        "daily_ticket_limit": 600,
        "ticket_price": Decimal("20"),
    },
]

# (start, end, capacity), created for every temple
TIME_SLOTS = [
    (time(6, 0), time(8, 0), 100),
    (time(8, 0), time(10, 0), 100),
    (time(10, 0), time(12, 0), 100),
    (time(14, 0), time(16, 0), 100),
    (time(16, 0), time(18, 0), 100),
    (time(18, 0), time(20, 0), 100),
]

def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("🌱 Creating seed data for Temple Visit Booking System...")

        users = {}
        for account in ACCOUNTS:
            user = db.query(User).filter(User.email == account["email"]).first()
            if user is None:
                user = User(
                    email=account["email"],
                    password=get_password_hash(account["password"]),
                    name=account["name"],
                    phone=account["phone"],
                    role=account["role"].value,
                    is_approved=True,
                )
                db.add(user)
                db.flush()
                print(f"Created {account['role'].value} account: {user.email}")
            users[account["role"]] = user

        board = users[Role.TEMPLE_BOARD]
        created = 0
        for temple_data in TEMPLES:
            if db.query(Temple).filter(Temple.name == temple_data["name"]).first():
                print(f"Temple already exists: {temple_data['name']}")
                continue

            temple = Temple(owner_id=board.id, **temple_data)
            temple.time_slots = [
                TimeSlot(start_time=start, end_time=end, capacity=capacity)
                for start, end, capacity in TIME_SLOTS
            ]
            db.add(temple)
            created += 1

        db.commit()
        print("✅ Successfully created seed data!")
        print(f"  - {created} temples with {len(TIME_SLOTS)} time slots each")
        print("Test accounts:")
        for account in ACCOUNTS:
            print(f"  {account['role'].value}: {account['email']} / {account['password']}")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
