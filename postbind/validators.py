"""
Property validators for resource descriptors.

Each validator is called as ``validator(props, key, object_name)`` where
``props`` is the resource's ``to_json()`` view. It returns ``None`` when the
property is acceptable and an error message otherwise. Every validator has a
``.required`` variant that also rejects a missing value:

    prop_types = {
        "url": validators.http_url.required,
        "webhook_secret": validators.string,
    }
"""

import re
from collections.abc import Mapping
from numbers import Real
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import urlparse


Validator = Callable[[Dict[str, Any], str, str], Optional[str]]


class PropType:
    """A named check over a single property value."""

    def __init__(self, check: Callable[[Any], bool], expected: str, is_required: bool = False):
        self._check = check
        self.expected = expected
        self.is_required = is_required

    @property
    def required(self) -> "PropType":
        return PropType(self._check, self.expected, is_required=True)

    def __call__(self, props: Dict[str, Any], key: str, object_name: str) -> Optional[str]:
        value = props.get(key)
        if value is None:
            if self.is_required:
                return f"The prop `{key}` is marked as required in `{object_name}`, but its value is `None`."
            return None
        if not self._check(value):
            return (
                f"Invalid prop `{key}` of type `{type(value).__name__}` supplied to "
                f"`{object_name}`, expected {self.expected}."
            )
        return None

    def __repr__(self) -> str:
        suffix = ".required" if self.is_required else ""
        return f"<PropType {self.expected}{suffix}>"


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


string = PropType(lambda v: isinstance(v, str), "`str`")
boolean = PropType(lambda v: isinstance(v, bool), "`bool`")
number = PropType(_is_number, "a number")
mapping = PropType(lambda v: isinstance(v, Mapping), "an object")
sequence = PropType(lambda v: isinstance(v, (list, tuple)), "a list")
http_url = PropType(_is_http_url, "an http(s) URL")
any_value = PropType(lambda v: True, "any value")


def one_of(values: Iterable[Any]) -> PropType:
    """Accept only one of the listed values."""
    allowed = tuple(values)
    return PropType(lambda v: v in allowed, f"one of {list(allowed)!r}")


def matches(pattern: str, label: Optional[str] = None) -> PropType:
    """Accept strings fully matching a regular expression."""
    compiled = re.compile(pattern)
    return PropType(
        lambda v: isinstance(v, str) and compiled.fullmatch(v) is not None,
        label or f"a string matching {pattern!r}",
    )


def list_of(item: PropType) -> PropType:
    """Accept lists whose every item passes ``item``'s check."""
    return PropType(
        lambda v: isinstance(v, (list, tuple)) and all(item._check(i) for i in v),
        f"a list of {item.expected}",
    )


def one_of_type(*types: PropType) -> PropType:
    """Accept a value passing any of the given checks."""
    return PropType(
        lambda v: any(t._check(v) for t in types),
        " or ".join(t.expected for t in types),
    )
