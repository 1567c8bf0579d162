# users_api/services/__init__.py
from .id_service import generate_user_id, accept_user_id
