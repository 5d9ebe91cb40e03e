r"""
optmap field descriptors.

Overview
- Descriptors are attached to the fields of a container class with
  typing.Annotated; a field may carry several option descriptors (one per
  spelling) that all target the same field:

      class Options:
          verbose: Annotated[bool, BooleanOption("-v"), BooleanOption("--verbose")] = False
          count: Annotated[Int32, IntegerOption("-c"), IntegerOption("--count")] = 0
          source: Annotated[str, Argument(order=1, name="SOURCE")] = ""
          rest: Annotated[list[str] | None, Arguments()] = None

- Kinds
  • BooleanOption: presence switch with an explicit on/off vocabulary (-t, -t+, -t-, --trace=off).
  • IntegerOption: base-10 integers checked against the field's width (Int8 … UInt64, int).
  • FloatingPointOption: invariant decimal/scientific text (float, Float32, Decimal).
  • StringOption: raw passthrough.
  • Argument: one positional slot, filled by ascending 'order'.
  • Arguments: the catch-all list receiving every leftover positional token.

- Capabilities (shared by every kind)
  • requires_argument: whether the option consumes a value when none is inline.
  • validate_container(cls): cross-field checks against the whole container class.
  • validate_field(field): type checks against the single annotated field.
  • assign(container, field, value): convert the raw text and store it (options only).

Validation highlights
- Flags must match r"-[^-]" (short) or r"--.{2,}" (long); None/empty/blank
  flags are caller misuse (TypeError), other bad spellings are ValueError.
- Type mismatches between a descriptor and its field raise DeclarationError.
- Conversion problems raise ConversionError subclasses tagged with the flag,
  the raw value and the field name.

Introspection
- DescriptorType metaclass provides stable __repr__/__rich_repr__ and exposes
  the fields listed in __introspectable__ as read-only properties.
"""
import functools
import operator
import re
import types
import typing
from abc import ABCMeta, abstractmethod
from decimal import Decimal
from typing import Annotated, NamedTuple, Union

from rich.text import Text

from .faults import *
from .scalars import *
from .scalars import typename
from .utils import *


class DescriptorType(ABCMeta):
    """
    Metaclass that turns descriptor classes into introspectable specs.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - boolean-option(descr=None, flag='-v', parameter_name='', value=True)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for every introspectable name along the MRO.
            """
            seen = set()
            for klass in reversed(type(self).__mro__):
                for name in vars(klass).get("__introspectable__", ()):
                    if name not in seen:
                        seen.add(name)
                        yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Field(NamedTuple):
    """
    One annotated member of a container class.

    - owner: the container class the field was discovered on.
    - name: attribute name used for assignment.
    - type: declared type with Annotated metadata and '| None' stripped.
    - nullable: True when the declaration was 'T | None'.
    - descriptors: every PropertyDescriptor attached to the field, in order.
    """
    owner: type
    name: str
    type: typing.Any
    nullable: bool
    descriptors: tuple


def _unwrap(annotation):
    """
    Split an annotation into (type, nullable, metadata).

    Handles Annotated[T, ...], T | None, Optional[T] and any nesting of them.
    """
    metadata = []
    nullable = False
    while True:
        if typing.get_origin(annotation) is Annotated:
            annotation, *extras = typing.get_args(annotation)
            metadata.extend(extras)
            continue
        if typing.get_origin(annotation) in (Union, types.UnionType):
            members = typing.get_args(annotation)
            remaining = [member for member in members if member is not type(None)]
            if len(remaining) == 1 and len(members) == 2:
                annotation = remaining[0]
                nullable = True
                continue
        return annotation, nullable, tuple(metadata)


def describe(cls, /):
    """
    Discover the fields of a container class.

    Returns every public (not '_'-prefixed) annotated member, inherited ones
    included and base classes first, as Field tuples. Fields without any
    PropertyDescriptor in their Annotated metadata are skipped.
    """
    if not isinstance(cls, type):
        raise TypeError("describe() argument must be a class")
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as exception:
        raise DeclarationError(f"cannot resolve the annotations of {cls.__qualname__}: {exception}") from None

    fields = []
    for name, annotation in hints.items():
        if name.startswith("_"):
            continue
        kind, nullable, metadata = _unwrap(annotation)
        if descriptors := tuple(x for x in metadata if isinstance(x, PropertyDescriptor)):
            fields.append(Field(cls, name, kind, nullable, descriptors))
    return fields


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_flag(cls, flag, /):
    """
    Validate an option spelling.

    - None, non-strings and blank strings are caller misuse (TypeError).
    - The rest must be '-' plus exactly one non-dash character, or '--' plus
      at least two characters (ValueError otherwise).
    """
    if not isinstance(flag, str) or not flag.strip():
        raise TypeError(f"{cls.__typename__} flag must be a non-empty string")
    if not flag.startswith("-"):
        raise ValueError(f"{cls.__typename__} flag {flag!r} must start with a minus sign")
    if flag.startswith("---"):
        raise ValueError(f"{cls.__typename__} flag {flag!r} cannot start with three dashes")
    if flag.startswith("--"):
        if not re.fullmatch(r"--.{2,}", flag, re.DOTALL):
            raise ValueError(f"{cls.__typename__} long flag {flag!r} must have at least 2 characters after '--'")
    elif not re.fullmatch(r"-[^-]", flag, re.DOTALL):
        raise ValueError(f"{cls.__typename__} short flag {flag!r} must have exactly 1 character after '-'")
    return flag


def _check_assignment(cls, container, field, value, /):
    if container is None:
        raise TypeError(f"{cls.__typename__} assignment requires a container")
    require(field, Field, f"{cls.__typename__} assignment requires a field")
    require(value, str, f"{cls.__typename__} assignment requires a string value")


class PropertyDescriptor(metaclass=DescriptorType):
    """
    Abstract root of every field descriptor.

    Subclasses decide whether they consume a value and how their usage is
    validated; the option table routes them by kind (option, positional
    argument, catch-all) and rejects any other kind.
    """

    __introspectable__ = ("descr",)

    _descr = None

    @property
    @abstractmethod
    def requires_argument(self): ...

    def validate_container(self, cls, /):
        """
        Validate this descriptor against the whole container class.
        """
        if not isinstance(cls, type):
            raise TypeError(f"{type(self).__typename__} container must be a class")

    @abstractmethod
    def validate_field(self, field, /):
        """
        Validate this descriptor against the field it is attached to.
        """
        require(field, Field, f"{type(self).__typename__} field must be a field")


class OptionDescriptor(PropertyDescriptor):
    """
    Named option: a flag spelling plus a conversion into the field's type.

    Properties
    - flag: exact spelling ('-x' or '--long').
    - parameter_name: free-form display name of the value (help output).
    - descr: optional description (help output).
    """

    __introspectable__ = (
        "flag",
        "parameter_name",
    )

    def __init__(self, flag, parameter_name="", /, *, descr=Unset):
        self._flag = _sanitize_flag(type(self), flag)
        self._parameter_name = require(parameter_name, str, f"{type(self).__typename__} 'parameter_name' must be a string")
        self._descr = _sanitize_descr(type(self), descr)

    @abstractmethod
    def assign(self, container, field, value, /):
        """
        Convert `value` and store it into `field` of `container`.
        """

    def _fault(self, exception, code, field, value, message, hint, /):
        return exception(
            message,
            title=code.name.lower().replace("_", " "),
            code=code,
            flag=self.flag,
            value=value,
            field=field.name,
            hint=hint,
            docs=getdoc(code),
        )

    def _expect(self, field, *kinds):
        if field.type not in kinds:
            raise DeclarationError(
                "%s %r can only be applied to fields of type %s, was applied to %s.%s of type %s" % (
                    type(self).__typename__,
                    self.flag,
                    ", ".join(map(typename, kinds)),
                    field.owner.__qualname__,
                    field.name,
                    typename(field.type),
                )
            )


class BooleanOption(OptionDescriptor):
    """
    Presence switch for bool fields.

    A bare flag ('-t', '--trace') stores `value` (True unless declared
    otherwise); an explicit value is read case-insensitively from the
    vocabulary below.

    - true:  '+', 'on', 'true', '1', 'yes', 'y'
    - false: '-', 'off', 'false', '0', 'no', 'n'
    """

    __introspectable__ = ("value",)

    def __init__(self, flag, value=True, /, *, descr=Unset):
        super().__init__(flag, descr=descr)
        self._value = require(value, bool, f"{type(self).__typename__} 'value' must be a boolean")

    @property
    def requires_argument(self):
        return False

    def validate_field(self, field, /):
        super().validate_field(field)
        self._expect(field, bool)

    def assign(self, container, field, value, /):
        _check_assignment(type(self), container, field, value)

        match value.upper():
            case "":
                result = self.value
            case "+" | "ON" | "TRUE" | "1" | "YES" | "Y":
                result = True
            case "-" | "OFF" | "FALSE" | "0" | "NO" | "N":
                result = False
            case _:
                raise self._fault(
                    InvalidBooleanValueError,
                    FaultCode.INVALID_BOOLEAN,
                    field,
                    value,
                    "unknown boolean value %r for option %r" % (value, self.flag),
                    "use one of yes/no, on/off, true/false, 1/0, +/- (for example: %s=on)" % self.flag,
                )

        setattr(container, field.name, result)


class IntegerOption(OptionDescriptor):
    """
    Base-10 integer option for int fields and the fixed-width aliases
    (Int8, Int16, Int32, Int64, UInt8, UInt16, UInt32, UInt64).
    """

    def __init__(self, flag, parameter_name="VALUE", /, *, descr=Unset):
        super().__init__(flag, parameter_name, descr=descr)

    @property
    def requires_argument(self):
        return True

    def validate_field(self, field, /):
        super().validate_field(field)
        self._expect(field, *INTEGER_TYPES)

    def assign(self, container, field, value, /):
        _check_assignment(type(self), container, field, value)
        setattr(container, field.name, _convert(self, field, value))


class FloatingPointOption(OptionDescriptor):
    """
    Floating-point option for float (double), Float32 (single) and Decimal fields.
    """

    def __init__(self, flag, parameter_name="VALUE", /, *, descr=Unset):
        super().__init__(flag, parameter_name, descr=descr)

    @property
    def requires_argument(self):
        return True

    def validate_field(self, field, /):
        super().validate_field(field)
        self._expect(field, *FLOATING_TYPES)

    def assign(self, container, field, value, /):
        _check_assignment(type(self), container, field, value)
        setattr(container, field.name, _convert(self, field, value))


def _convert(option, field, value, /):
    """
    Numeric conversion shared by the integer and floating-point options.

    The field's declared type picks the converter, so an option is converted
    the same way whichever numeric kind declared it.
    """
    if field.type in INTEGER_TYPES:
        converter = to_integer
    elif field.type in FLOATING_TYPES:
        converter = to_floating
    else:
        raise TypeError(f"{type(option).__typename__} cannot convert into a field of type {typename(field.type)}")

    try:
        return converter(value, field.type)
    except OverflowError:
        raise option._fault(
            ValueOverflowError,
            FaultCode.VALUE_OVERFLOW,
            field,
            value,
            "value %r for option %r is outside the range of %s" % (value, option.flag, typename(field.type)),
            "use a smaller value for %s" % option.flag,
        ) from None
    except ValueError:
        raise option._fault(
            InvalidFormatError,
            FaultCode.INVALID_FORMAT,
            field,
            value,
            "value %r for option %r is not a valid %s" % (value, option.flag, typename(field.type)),
            "pass a number (for example: %s=10)" % option.flag,
        ) from None


class StringOption(OptionDescriptor):
    """
    Text option; the raw value is stored unchanged.
    """

    def __init__(self, flag, parameter_name="VALUE", /, *, descr=Unset):
        super().__init__(flag, parameter_name, descr=descr)

    @property
    def requires_argument(self):
        return True

    def validate_field(self, field, /):
        super().validate_field(field)
        self._expect(field, str)

    def assign(self, container, field, value, /):
        _check_assignment(type(self), container, field, value)
        setattr(container, field.name, value)


class Argument(PropertyDescriptor):
    """
    Positional slot for a str field.

    Slots are filled by ascending `order` as positional tokens are met.
    `name` is the display label in help output; `optional` only changes how
    the slot is shown there (missing positionals are never an error).
    """

    __introspectable__ = (
        "order",
        "name",
        "optional",
    )

    def __init__(self, *, order=0, name="", optional=False, descr=Unset):
        if not isinstance(order, int) or isinstance(order, bool):
            raise TypeError(f"{type(self).__typename__} 'order' must be an integer")
        self._order = order
        self._name = require(name, str, f"{type(self).__typename__} 'name' must be a string").strip()
        self._optional = bool(optional)
        self._descr = _sanitize_descr(type(self), descr)

    @property
    def requires_argument(self):
        return False

    def validate_field(self, field, /):
        super().validate_field(field)
        if self not in field.descriptors:
            raise DeclarationError(f"{type(self).__typename__} validated against field {field.name!r} which does not carry it")
        if field.type is not str:
            raise DeclarationError(
                "%s can only be applied to fields of type str, was applied to %s.%s of type %s" % (
                    type(self).__typename__, field.owner.__qualname__, field.name, typename(field.type)
                )
            )


class Arguments(PropertyDescriptor):
    """
    Catch-all list[str] field receiving every leftover positional token.

    At most one field per container class may carry it.
    """

    def __init__(self, *, descr=Unset):
        self._descr = _sanitize_descr(type(self), descr)

    @property
    def requires_argument(self):
        return False

    def validate_container(self, cls, /):
        super().validate_container(cls)
        carriers = [field.name for field in describe(cls) if any(isinstance(x, Arguments) for x in field.descriptors)]
        if not carriers:
            raise DeclarationError(f"{type(self).__typename__} validated against {cls.__qualname__} which has no catch-all field")
        if len(carriers) > 1:
            raise DeclarationError(
                "%s is applied to more than one field of %s: %s" % (type(self).__typename__, cls.__qualname__, ", ".join(carriers))
            )

    def validate_field(self, field, /):
        super().validate_field(field)
        if self not in field.descriptors:
            raise DeclarationError(f"{type(self).__typename__} validated against field {field.name!r} which does not carry it")
        if typing.get_origin(field.type) is not list or typing.get_args(field.type) != (str,):
            raise DeclarationError(
                "%s can only be applied to fields of type list[str], was applied to %s.%s of type %s" % (
                    type(self).__typename__, field.owner.__qualname__, field.name, typename(field.type)
                )
            )


__all__ = (
    # Discovery
    "Field",
    "describe",

    # Descriptor kinds
    "PropertyDescriptor",
    "OptionDescriptor",
    "BooleanOption",
    "IntegerOption",
    "FloatingPointOption",
    "StringOption",
    "Argument",
    "Arguments",

    # Scalar kinds re-exported for declarations
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Decimal",
)
