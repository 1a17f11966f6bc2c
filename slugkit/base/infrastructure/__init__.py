from .in_memory_gateway import *  # NOQA
