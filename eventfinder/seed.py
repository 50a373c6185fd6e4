from datetime import datetime
import logging

from eventfinder.auth.security import get_password_hash
from eventfinder.storage import Storage, StorageError

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {
        "username": "johndoe",
        "email": "john@example.com",
        "name": "John Doe",
        "avatar": "https://images.unsplash.com/photo-1500648767791-00dcc994a43e?auto=format&fit=facearea&facepad=2&w=256&h=256&q=80",
    },
    {
        "username": "janedoe",
        "email": "jane@example.com",
        "name": "Jane Doe",
        "avatar": "https://images.unsplash.com/photo-1494790108377-be9c29b29330?auto=format&fit=facearea&facepad=2&w=256&h=256&q=80",
    },
]
SAMPLE_PASSWORD = "password123"

# host is an index into SAMPLE_USERS
SAMPLE_EVENTS = [
    {
        "title": "Summer Music Festival",
        "description": "Join us for a day of amazing music performances in Central Park!",
        "location": "Central Park",
        "address": "Central Park, New York, NY",
        "latitude": 40.785091,
        "longitude": -73.968285,
        "date": datetime(2023, 6, 15, 14, 0),
        "end_date": datetime(2023, 6, 15, 22, 0),
        "category_id": "Music",
        "price": 2500,
        "is_free": False,
        "image_url": "https://images.unsplash.com/photo-1501281668745-f7f57925c3b4?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 0,
    },
    {
        "title": "Annual Tech Conference",
        "description": "The biggest tech conference in New York City",
        "location": "Javits Center",
        "address": "Javits Center, New York, NY",
        "latitude": 40.7570877,
        "longitude": -74.0028733,
        "date": datetime(2023, 6, 24, 9, 0),
        "end_date": datetime(2023, 6, 24, 18, 0),
        "category_id": "Business",
        "price": 14900,
        "is_free": False,
        "image_url": "https://images.unsplash.com/photo-1517457373958-b7bdd4587205?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 1,
    },
    {
        "title": "International Food Festival",
        "description": "Taste foods from all around the world",
        "location": "Bryant Park",
        "address": "Bryant Park, New York, NY",
        "latitude": 40.753605,
        "longitude": -73.9834889,
        "date": datetime(2023, 6, 18, 11, 0),
        "end_date": datetime(2023, 6, 18, 20, 0),
        "category_id": "Food",
        "price": 0,
        "is_free": True,
        "image_url": "https://images.unsplash.com/photo-1470753937643-efeb931202a9?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 0,
    },
    {
        "title": "Modern Art Exhibition",
        "description": "Featuring modern art from local and international artists",
        "location": "MoMA",
        "address": "MoMA, New York, NY",
        "latitude": 40.7614327,
        "longitude": -73.9776216,
        "date": datetime(2023, 6, 20, 10, 0),
        "end_date": datetime(2023, 6, 20, 18, 0),
        "category_id": "Arts",
        "price": 1500,
        "is_free": False,
        "image_url": "https://images.unsplash.com/photo-1527525443983-6e60c75fff46?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 1,
    },
    {
        "title": "Startup Networking Mixer",
        "description": "Connect with other entrepreneurs and startups in NYC",
        "location": "WeWork",
        "address": "WeWork, New York, NY",
        "latitude": 40.7484,
        "longitude": -73.9857,
        "date": datetime(2023, 6, 22, 18, 30),
        "end_date": datetime(2023, 6, 22, 21, 30),
        "category_id": "Business",
        "price": 1000,
        "is_free": False,
        "image_url": "https://images.unsplash.com/photo-1521737604893-d14cc237f11d?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 0,
    },
    {
        "title": "Sunset Yoga Workshop",
        "description": "Relax and unwind with sunset yoga on the High Line",
        "location": "The High Line",
        "address": "The High Line, New York, NY",
        "latitude": 40.7479925,
        "longitude": -74.0047649,
        "date": datetime(2023, 6, 16, 19, 0),
        "end_date": datetime(2023, 6, 16, 20, 30),
        "category_id": "Health",
        "price": 2000,
        "is_free": False,
        "image_url": "https://images.unsplash.com/photo-1540747913346-19e32dc3e97e?auto=format&fit=crop&w=800&h=500&q=80",
        "host": 1,
    },
]

# (user index, event index)
SAMPLE_ATTENDANCE = [(0, 1), (1, 0), (0, 2), (1, 2), (0, 4), (1, 3), (0, 5)]


async def seed_database(storage: Storage) -> bool:
    """Load the sample users, events and registrations into an empty store.

    Returns False when users already exist and nothing was written.
    """
    if await storage.count_users() > 0:
        logger.info("Database already has data, skipping seed.")
        return False

    logger.info("Seeding database with sample data...")
    try:
        hashed_password = get_password_hash(SAMPLE_PASSWORD)
        users = [
            await storage.create_user({**user, "hashed_password": hashed_password})
            for user in SAMPLE_USERS
        ]
        events = []
        for sample in SAMPLE_EVENTS:
            data = {key: value for key, value in sample.items() if key != "host"}
            data["host_id"] = users[sample["host"]].id
            data["is_online"] = False
            events.append(await storage.create_event(data))
        for user_index, event_index in SAMPLE_ATTENDANCE:
            await storage.create_attendee(users[user_index].id, events[event_index].id)
    except StorageError as e:
        logger.error(f"Error seeding database: {str(e)}", exc_info=True)
        raise
    logger.info(f"Seeded {len(users)} users, {len(events)} events and {len(SAMPLE_ATTENDANCE)} registrations.")
    return True
