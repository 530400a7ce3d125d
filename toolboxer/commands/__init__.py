from .portown import execute as execute_portown
from .tree import execute as execute_tree

__all__ = ["execute_portown", "execute_tree"]
