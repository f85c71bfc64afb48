# Import the basic modules
from .config import Settings
from .database import AppContext, Base, get_db, get_settings
from .security import hash_password, verify_password

# Export the shared core components
__all__ = [
    'Settings', 'AppContext', 'Base', 'get_db', 'get_settings',
    'hash_password', 'verify_password',
]

# auth is not imported here to avoid a circular import with user.models;
# other modules import it directly from core.auth
