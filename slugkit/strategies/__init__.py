# (c) Nelen & Schuurmans

from .base import *  # NOQA
from .nanoid_strategy import *  # NOQA
from .registry import *  # NOQA
from .uuid_strategy import *  # NOQA
