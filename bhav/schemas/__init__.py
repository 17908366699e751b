# Schemas package (re-export feature modules for stable imports)
from .requests.request import *
from .notifications.notification import *
from .users.user import *
from .inventory.inventory import *
from .common.common import *
