# (c) Nelen & Schuurmans

from .alphabets import *  # NOQA
from .base.domain.exceptions import *  # NOQA
from .custom_slug import *  # NOQA
from .deduplication import *  # NOQA
from .generation import *  # NOQA
from .settings import *  # NOQA
from .space import *  # NOQA
from .strategies import *  # NOQA

__version__ = "0.1.0"
