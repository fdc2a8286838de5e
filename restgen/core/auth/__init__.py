from .models import Principal
from .provider import AuthError, get_auth_provider
from .rbac import gates_for, role_gate

__all__ = ["AuthError", "Principal", "gates_for", "get_auth_provider", "role_gate"]
