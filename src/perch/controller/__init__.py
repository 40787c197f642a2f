"""Controllers: registration, configuration, and path resolution."""

from perch.controller.action import Action, ActionMethod
from perch.controller.base import Controller
from perch.controller.registry import Registry, default_registry
from perch.controller.resolve import Resolver
from perch.controller.traits import LayoutRef, LayoutRules, TraitStore

__all__ = [
    "Action",
    "ActionMethod",
    "Controller",
    "LayoutRef",
    "LayoutRules",
    "Registry",
    "Resolver",
    "TraitStore",
    "default_registry",
]
