from .auth import Profile
from .yard import Zone, GoodsLanding, GoodsPlacement, Movement
from .audit import AuditLogEntry

__all__ = [
    'Profile',
    'Zone', 'GoodsLanding', 'GoodsPlacement', 'Movement',
    'AuditLogEntry',
]
