#!/usr/bin/env python3
"""
Create the first administrator account.

Usage:
    python create_admin.py --name "Admin" --email admin@empresa.com
"""

import argparse
import getpass
import logging
import sys

from inventariopro.core.config import Settings
from inventariopro.core.database import AppContext
from inventariopro.core.exceptions import DuplicateEmail
from inventariopro.user.crud import create_user
from inventariopro.user.models import Role

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_admin(settings, name, email, password):
    if len(password) < settings.password_min_length:
        raise ValueError(f"Password must be at least {settings.password_min_length} characters")

    context = AppContext(settings)
    context.startup()
    db = context.session_factory()
    try:
        return create_user(db, {
            "name": name,
            "email": email,
            "password": password,
            "role": Role.ADMIN,
        })
    finally:
        db.close()
        context.shutdown()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an InventarioPro administrator")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    try:
        user = create_admin(Settings.from_env(), args.name, args.email, password)
    except DuplicateEmail:
        logger.error(f"A user with email {args.email} already exists")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"Administrator {user.email} created with id {user.id}")
