"""
Modules package initialization.
Each functional area of the API lives in its own subpackage with api, models,
schemas and services layers.
"""

from app.modules import auth
from app.modules import user_management
from app.modules import business_profiles
from app.modules import statuses
from app.modules import notifications
from app.modules import password_reset
from app.modules import media
