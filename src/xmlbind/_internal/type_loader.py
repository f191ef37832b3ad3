"""Resolve ``module:QualifiedName`` references to target classes (internal)."""

import importlib


def load_type(reference: str) -> type:
    """Import and return the class named by ``module:Class`` or ``module:Outer.Inner``.

    Raises:
        ValueError: If the reference is malformed or does not name a class
    """
    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"Type reference '{reference}' must look like 'package.module:ClassName'")

    obj = importlib.import_module(module_name)
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"'{qualname}' not found in module '{module_name}'")
    if not isinstance(obj, type):
        raise ValueError(f"'{reference}' does not name a class")
    return obj
