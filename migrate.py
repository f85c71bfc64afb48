"""
Apply database migrations with Alembic.

Usage:
    python migrate.py              # upgrade to head
    python migrate.py --autogenerate "add supplier table"
"""

import argparse
import logging
import subprocess
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def migrate(message=None):
    """Optionally autogenerate a revision, then upgrade to head"""
    try:
        if message:
            logger.info(f"Generating migration: {message}")
            subprocess.run(
                ["alembic", "revision", "--autogenerate", "-m", message],
                check=True
            )

        logger.info("Applying migrations...")
        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True
        )

        logger.info("Migration completed successfully!")
    except subprocess.CalledProcessError as e:
        logger.error(f"Migration failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run InventarioPro database migrations")
    parser.add_argument("--autogenerate", metavar="MESSAGE", help="Create a new revision from the models first")
    args = parser.parse_args()
    migrate(args.autogenerate)
