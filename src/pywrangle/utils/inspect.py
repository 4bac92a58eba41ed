"""Provide insights about Python objects."""

import inspect
import textwrap
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of the given object.

    Will return the name of the object and the
    name of the module and class it belongs to.

    For functions or methods, this will return
    something like `module.class.method` or
    `module.function`.

    >>> class TestClass:
    ...   def method(self, arg):
    ...     pass
    >>> get_qualname(TestClass.method)
    'pywrangle.utils.inspect.TestClass.method'
    """
    module = inspect.getmodule(obj)
    module = module.__name__ if module is not None else "builtins"
    if inspect.ismethod(obj) or inspect.isfunction(obj):
        if hasattr(obj, "__self__") and obj.__self__:
            class_name = obj.__self__.__class__.__name__
            return f"{module}.{class_name}.{obj.__name__}"
        return f"{module}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module}.{obj.__name__}"
    elif inspect.ismodule(obj):
        return obj.__name__
    elif isinstance(obj, object):
        return f"{module}.{obj.__class__.__name__}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")


def get_body_source(func: Any) -> str:
    """Get the source code of the body of a function.

    The ``def`` line and the docstring are removed
    and the code is dedented, so that it reads like
    a snippet that could be typed in a shell.

    >>> def example():
    ...     '''Doc.'''
    ...     x = 1
    ...     return x + 1
    >>> print(get_body_source(example))  # doctest: +SKIP
    x = 1
    return x + 1
    """
    lines = inspect.getsource(func).splitlines()
    while lines and not lines[0].rstrip().endswith(":"):
        # Signature spanning multiple lines.
        lines.pop(0)
    body = textwrap.dedent("\n".join(lines[1:]))
    docstring = inspect.getdoc(func)
    if docstring is not None:
        for quotes in ('"""', "'''"):
            if body.startswith(quotes):
                body = body[body.index(quotes, len(quotes)) + len(quotes):].lstrip("\n")
                break
    return body.rstrip()
