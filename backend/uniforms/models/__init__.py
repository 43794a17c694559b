from .staff import Store, Role, Staff, RoleAllowanceLimit, RoleCooldownLimit
from .settings import SystemSetting
from .inventory import UniformItem
from .requests import UniformRequest, UniformRequestItem

__all__ = [
    'Store', 'Role', 'Staff', 'RoleAllowanceLimit', 'RoleCooldownLimit',
    'SystemSetting',
    'UniformItem',
    'UniformRequest', 'UniformRequestItem',
]
