"""Seed the vocabulary table (and optionally a demo user)."""

import argparse
import logging
import sys

from core.errors import ConflictError
from core.interfaces import USERS
from core.users import UserService
from core.vocabulary import get_seed_data, load_vocabulary_file, seed_vocabulary
from server.app import build_storage
from server.settings import Settings

logger = logging.getLogger(__name__)

DEMO_EMAIL = 'test@example.com'
DEMO_USERNAME = 'DemoUser'


def seed_demo_user(storage) -> dict:
    existing = storage.find_one(USERS, email=DEMO_EMAIL)
    if existing:
        logger.info(f"Demo user already exists with ID: {existing['id']}")
        return existing
    try:
        user = UserService(storage).register(DEMO_EMAIL, DEMO_USERNAME)
    except ConflictError:
        return storage.find_one(USERS, email=DEMO_EMAIL)
    logger.info(f"Demo user created with ID: {user['id']}")
    return user


def main():
    parser = argparse.ArgumentParser(description='Hanyu - seed vocabulary')
    parser.add_argument(
        '--file',
        help='JSON array of {chinese, pinyin, english, difficulty} items (default: built-in list)'
    )
    parser.add_argument(
        '--demo-user',
        action='store_true',
        help=f'Also create the demo user {DEMO_EMAIL}'
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    storage = build_storage(Settings.from_env())
    items = load_vocabulary_file(args.file) if args.file else get_seed_data()
    try:
        inserted = seed_vocabulary(storage, items)
        if args.demo_user:
            seed_demo_user(storage)
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        sys.exit(1)
    print(f"Database seeded successfully! {inserted} new words.")


if __name__ == '__main__':
    main()
