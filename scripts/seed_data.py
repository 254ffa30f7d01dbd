import asyncio
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from playtime.config import get_settings
from playtime.db import LOCATIONS, PETS, REVIEWS, USERS, client_options
from playtime.models.geo import to_point


async def main():
    settings = get_settings()
    client = AsyncIOMotorClient(settings.mongo_uri, **client_options(settings))
    db = client[settings.mongo_db]
    now = datetime.now(timezone.utc)

    user = await db[USERS].insert_one(
        {
            "nickName": "demo",
            "phoneNumber": "13800000000",
            "avatarUrl": "",
            "openId": "demo-openid-1",
            "unionId": "",
            "createdAt": now,
            "updatedAt": now,
        }
    )

    pet = await db[PETS].insert_one(
        {
            "name": "Mochi",
            "gender": "female",
            "size": "small",
            "breed": "shiba",
            "avatar": "",
            "character": "curious",
            "age": 2,
            "ownerId": user.inserted_id,
            "createdAt": now,
            "updatedAt": now,
        }
    )

    places = await db[LOCATIONS].insert_many(
        [
            {
                "name": "Chaoyang Park",
                "address": "1 Chaoyang Park South Rd",
                "description": "Large park with an off-leash lawn",
                "category": "park",
                "isPetFriendly": True,
                "petSize": ["small", "medium", "large"],
                "petType": ["dog"],
                "zone": ["chaoyang"],
                "location": to_point(39.9336, 116.4793).model_dump(),
                "createdAt": now,
                "updatedAt": now,
            },
            {
                "name": "Paw Cafe",
                "address": "88 Sanlitun Rd",
                "description": "Cafe with water bowls and treats",
                "category": "cafe",
                "isPetFriendly": True,
                "petSize": ["small"],
                "petType": ["dog", "cat"],
                "zone": ["sanlitun"],
                "location": to_point(39.9365, 116.4551).model_dump(),
                "createdAt": now,
                "updatedAt": now,
            },
        ]
    )

    review = await db[REVIEWS].insert_one(
        {
            "place_id": str(places.inserted_ids[0]),
            "user_id": str(user.inserted_id),
            "user_name": "demo",
            "content": "Lots of space to run.",
            "rating_star": 5,
            "date": now,
        }
    )

    print("✅ Seeded demo data successfully!")
    print(f"   - Created user: {user.inserted_id}")
    print(f"   - Created pet: {pet.inserted_id}")
    print(f"   - Created {len(places.inserted_ids)} places:")
    for i, place_id in enumerate(places.inserted_ids):
        print(f"     Place {i+1}: {place_id}")
    print(f"   - Created review: {review.inserted_id}")
    client.close()

asyncio.run(main())
