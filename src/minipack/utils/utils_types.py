# src/minipack/utils/utils_types.py

from types import UnionType
from typing import (
    Any,
    Literal,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)

from typing_extensions import NotRequired


T = TypeVar("T")


def cast_hint(typ: type[T], value: Any) -> T:  # noqa: ARG001
    """Narrow `value` to `typ` for the type checker only.

    No runtime checks. Use plain cast() for unions.
    """
    return cast("T", value)


def is_typeddict(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and hasattr(tp, "__annotations__")
        and hasattr(tp, "__total__")
    )


def schema_from_typeddict(td: type[Any]) -> dict[str, Any]:
    """Field name → annotated type for a TypedDict (extras kept)."""
    return get_type_hints(td, include_extras=True)


def literal_to_set(literal_type: Any) -> set[Any]:
    """Return the allowed values of a Literal type.

    Raises:
        TypeError: If the input is not a Literal type
    """
    if get_origin(literal_type) is not Literal:
        msg = f"Expected Literal type, got {literal_type}"
        raise TypeError(msg)
    return set(get_args(literal_type))


def _isinstance_generics(value: Any, origin: Any, args: tuple[Any, ...]) -> bool:
    if not isinstance(value, origin):
        return False
    if not args:
        return True

    if origin is list:
        return all(safe_isinstance(v, args[0]) for v in cast_hint(list[Any], value))

    if origin is dict:
        key_t, val_t = args if len(args) == 2 else (Any, Any)  # noqa: PLR2004
        return all(
            safe_isinstance(k, key_t) and safe_isinstance(v, val_t)
            for k, v in cast_hint(dict[Any, Any], value).items()
        )

    # other typing origins (set[], Iterable[]) are accepted on the outer check
    return True


def safe_isinstance(value: Any, expected_type: Any) -> bool:  # noqa: PLR0911
    """isinstance() that understands the typing constructs used in config schemas.

    Handles Any, NotRequired, Literal, unions (including Optional),
    TypedDicts (checked as plain dicts), and parametrized list/dict.
    """
    if expected_type is Any:
        return True

    origin = get_origin(expected_type)
    args = get_args(expected_type)

    if origin is NotRequired:
        return safe_isinstance(value, args[0]) if args else True

    if origin is Literal:
        return value in args

    if origin in {Union, UnionType}:
        return any(safe_isinstance(value, t) for t in args)

    if is_typeddict(expected_type):
        return isinstance(value, dict)

    if origin:
        return _isinstance_generics(value, origin, args)

    # bool is an int subclass; never accept it where a number is expected
    if isinstance(value, bool) and expected_type in {int, float}:
        return False

    # JSON has one number type; 2 is a fine value for a float field
    if expected_type is float and isinstance(value, int):
        return True

    try:
        return isinstance(value, expected_type)
    except TypeError:
        return False
