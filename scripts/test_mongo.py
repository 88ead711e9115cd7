#!/usr/bin/env python3
"""
MongoDB Test Script

Exercises the portal collections against a real MongoDB with sample data,
then removes everything it created.
Run: python scripts/test_mongo.py
"""
import sys
sys.path.insert(0, '.')

from datetime import timedelta

from app.core.auth import hash_password
from app.db.mongodb import test_mongo_connection, init_mongo_indexes
from app.services.auth_service import default_profile, digest_reset_token
from app.services.mongo_service import (
    ApplicationStore,
    CompanyStore,
    JobStore,
    UserStore,
    utcnow,
)


def test_users(users: UserStore) -> dict:
    """Test user operations, including the session state updates."""
    print("\n[1] Testing users collection...")

    user = users.create({
        "full_name": "Script Recruiter",
        "email": "script.recruiter@example.com",
        "phone_number": "9000000001",
        "password": hash_password("secret1"),
        "role": "recruiter",
        "profile": default_profile("Created by test_mongo.py"),
    })
    print(f"    ✅ Inserted user: {user['_id']}")

    users.set_refresh_token(user["_id"], "token-a")
    assert users.swap_refresh_token(user["_id"], "token-a", "token-b")
    assert not users.swap_refresh_token(user["_id"], "token-a", "token-c")
    print("    ✅ Refresh token compare-and-swap works")

    digest = digest_reset_token("reset-token")
    users.set_reset_token(user["_id"], digest, utcnow() + timedelta(minutes=10))
    assert users.consume_reset_token(digest, utcnow(), hash_password("secret2")) is not None
    assert users.consume_reset_token(digest, utcnow(), hash_password("secret3")) is None
    print("    ✅ Reset token is single-use")

    return user


def test_jobs(user: dict, companies: CompanyStore, jobs: JobStore, applications: ApplicationStore):
    """Test company -> job -> application chain."""
    print("\n[2] Testing companies / jobs / applications...")

    company = companies.create(user["_id"], {"company_name": "Script Corp", "location": "Pune"})
    print(f"    ✅ Inserted company: {company['_id']}")

    job = jobs.create(user["_id"], {
        "title": "Backend Developer",
        "description": "Build APIs with FastAPI and MongoDB",
        "requirements": ["python", "mongodb"],
        "salary": 12.5,
        "location": ["Pune"],
        "job_type": "Full-time",
        "experience": 1,
        "position": 2,
        "company": company["_id"],
    })
    print(f"    ✅ Inserted job: {job['_id']}")

    found = jobs.search("fastapi")
    print(f"    ✅ Search 'fastapi' found {len(found)} job(s)")

    application = applications.create(job["_id"], user["_id"])
    jobs.add_application(job["_id"], application["_id"])
    applications.update_status(application["_id"], "interview")
    print(f"    ✅ Application {application['_id']} moved to interview")

    return company, job


def main():
    print("=" * 50)
    print("MONGODB COLLECTIONS TEST")
    print("=" * 50)

    if not test_mongo_connection():
        print("❌ Cannot connect to MongoDB. Check MONGODB_URI in .env")
        return

    init_mongo_indexes()

    users, companies, jobs, applications = UserStore(), CompanyStore(), JobStore(), ApplicationStore()
    user = test_users(users)
    company, job = test_jobs(user, companies, jobs, applications)

    # Cleanup
    applications.delete_by_job(job["_id"])
    jobs.delete(job["_id"])
    companies.collection.delete_one({"_id": company["_id"]})
    users.collection.delete_one({"_id": user["_id"]})
    print("\n    🧹 Cleaned up test documents")

    print("\n" + "=" * 50)
    print("MongoDB test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
