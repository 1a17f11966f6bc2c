# (c) Nelen & Schuurmans

from .space_tracker import *  # NOQA
from .space_usage import *  # NOQA
from .sql_gateway import *  # NOQA
from .usage_gateway import *  # NOQA
from .usage_repository import *  # NOQA
