"""
Database table creation script for the Identity Resolution Service
This script creates the contacts table and checks the database connection.
Run it once against a new database (Lambda deployments do not create tables).
"""

import asyncio
import logging

from database import db_manager
from services.contact_store import ContactStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def create_tables(manager=db_manager) -> bool:
    """
    Create all database tables defined in the models
    Returns True on success
    """
    try:
        logger.info("Starting database table creation...")

        if not await manager.test_connection():
            logger.error("Database connection failed - cannot create tables")
            return False

        await manager.create_tables()

        async with manager.get_session() as session:
            count = await ContactStore(session).count()
            logger.info(f"Contacts table accessible - current count: {count}")

        return True

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        return False
    finally:
        await manager.dispose()


def main():
    logger.info("Identity Resolution API - Database Setup")

    success = asyncio.run(create_tables())

    if success:
        logger.info("Database setup completed successfully!")
    else:
        logger.error("Database setup failed! Check your database configuration and try again")

    return success


if __name__ == "__main__":
    main()
