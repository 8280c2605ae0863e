"""
Field directive model.

Structures declare which of their fields are encrypted on the way out or
decrypted on the way in, either inline through ``typing.Annotated``::

    @dataclass
    class UserResponse:
        name: str
        email: Annotated[str, FieldEncrypt(mode=BlockMode.CBC)]
        tags: Annotated[list[str], FieldEncrypt()]

or explicitly with the ``crypto_fields`` decorator::

    @crypto_fields(encrypt={"email": FieldEncrypt()}, decrypt={"email": FieldDecrypt()})
    class UserRecord:
        ...

Only the class's own declarations are scanned; fields inherited from a base
class are not.
"""

import inspect
import re
import sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Callable, ForwardRef, Type, TypeVar, get_args, get_origin

from fieldcrypt.errors import GeneralCryptoError

T = TypeVar("T")

# Attribute set by @crypto_fields on decorated classes
DIRECTIVES_ATTR = "__crypto_directives__"

_DIRECTIVE_NAMES = re.compile(r"\bField(?:En|De)crypt\b")


class CryptoAlgorithm(str, Enum):
    """Supported field encryption algorithms."""
    AES = "AES"  # Symmetric, same key both ways
    DES = "DES"  # Symmetric, legacy interop
    RSA = "RSA"  # Asymmetric key pair

    @property
    def is_symmetric(self) -> bool:
        return self in (CryptoAlgorithm.AES, CryptoAlgorithm.DES)

    @property
    def is_asymmetric(self) -> bool:
        return self is CryptoAlgorithm.RSA


class BlockMode(str, Enum):
    """Block cipher modes of operation."""
    ECB = "ECB"
    CBC = "CBC"
    CFB = "CFB"
    OFB = "OFB"
    CTR = "CTR"

    @property
    def uses_iv(self) -> bool:
        return self is not BlockMode.ECB


class PaddingScheme(str, Enum):
    """Padding schemes accepted on directives."""
    NO_PADDING = "NoPadding"
    ZERO_PADDING = "ZeroPadding"
    ISO10126_PADDING = "ISO10126Padding"
    OAEP_PADDING = "OAEPPadding"
    PKCS1_PADDING = "PKCS1Padding"
    PKCS5_PADDING = "PKCS5Padding"
    SSL3_PADDING = "SSL3Padding"


class CryptoDirection(str, Enum):
    """Direction of a crypto pipeline; the value doubles as the operation label."""
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


def _coerce(enum_cls: type[Enum], value: Any) -> Any:
    """Convert a raw value to an enum member, leaving unknown values untouched."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class CryptoDirective:
    """Algorithm, block mode and padding used for one field."""

    algorithm: CryptoAlgorithm = CryptoAlgorithm.AES
    mode: BlockMode = BlockMode.ECB
    padding: PaddingScheme = PaddingScheme.PKCS5_PADDING

    direction = CryptoDirection.ENCRYPT

    def __post_init__(self):
        # Unknown algorithms are kept so interception can skip them with a warning
        object.__setattr__(self, "algorithm", _coerce(CryptoAlgorithm, self.algorithm))
        object.__setattr__(self, "mode", BlockMode(self.mode))
        object.__setattr__(self, "padding", PaddingScheme(self.padding))

    @property
    def is_recognized(self) -> bool:
        return isinstance(self.algorithm, CryptoAlgorithm)


@dataclass(frozen=True)
class FieldEncrypt(CryptoDirective):
    """Encrypt this field when its owner leaves an encrypt-on-exit operation."""

    mode: BlockMode = BlockMode.ECB

    direction = CryptoDirection.ENCRYPT


@dataclass(frozen=True)
class FieldDecrypt(CryptoDirective):
    """Decrypt this field when its owner enters a decrypt-on-entry operation."""

    mode: BlockMode = BlockMode.CBC

    direction = CryptoDirection.DECRYPT


_DIRECTIVE_TYPES = {
    CryptoDirection.ENCRYPT: FieldEncrypt,
    CryptoDirection.DECRYPT: FieldDecrypt,
}


@dataclass
class FieldBinding:
    """Handle on one directive-bearing field of a live object."""

    owner: Any
    name: str
    directive: CryptoDirective

    def get(self) -> Any:
        return getattr(self.owner, self.name, None)

    def set(self, value: Any, operation: str = CryptoDirection.ENCRYPT.value) -> None:
        """Write value back to the field.

        Raises:
            GeneralCryptoError: If the owner rejects the write (frozen
                dataclass, read-only property, slots without the field)
        """
        try:
            setattr(self.owner, self.name, value)
        except (AttributeError, TypeError) as e:
            raise GeneralCryptoError(
                f"Cannot write field {type(self.owner).__name__}.{self.name}: {e}",
                operation=operation,
                data=self.name,
            ) from e


def _unresolved_text(hint: Any) -> str | None:
    """Source text of an annotation that is still unevaluated, else None."""
    if isinstance(hint, str):
        return hint
    if isinstance(hint, ForwardRef):
        return hint.__forward_arg__
    return None


def _raw_annotations(cls: type) -> dict[str, Any]:
    try:
        return inspect.get_annotations(cls)
    except NameError:
        # Deferred annotations (3.14+) naming something missing at runtime
        import annotationlib

        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)


def _own_annotations(cls: type) -> dict[str, Any]:
    """Annotations declared directly on cls, each resolved on its own.

    An annotation that cannot be evaluated (a TYPE_CHECKING-only import, a
    typo) is dropped without affecting the other fields. If that annotation
    names a directive, the class is rejected instead of silently losing it.

    Raises:
        GeneralCryptoError: If a directive-bearing annotation cannot be resolved
    """
    module = sys.modules.get(cls.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(cls))

    resolved: dict[str, Any] = {}
    for name, hint in _raw_annotations(cls).items():
        text = _unresolved_text(hint)
        if text is None:
            resolved[name] = hint
            continue
        try:
            resolved[name] = eval(text, globalns, localns)
        except (NameError, SyntaxError, TypeError, AttributeError) as e:
            if _DIRECTIVE_NAMES.search(text):
                raise GeneralCryptoError(
                    f"Cannot resolve annotation of {cls.__qualname__}.{name} "
                    f"carrying a crypto directive: {text}",
                    operation="discover",
                    data=name,
                ) from e
    return resolved

def _directive_from_metadata(hint: Any, direction: CryptoDirection) -> CryptoDirective | None:
    if get_origin(hint) is not Annotated:
        return None
    directive_type = _DIRECTIVE_TYPES[direction]
    for meta in get_args(hint)[1:]:
        if isinstance(meta, directive_type):
            return meta
        if meta is directive_type:
            return directive_type()
    return None


@lru_cache(maxsize=512)
def declared_directives(
    cls: type, direction: CryptoDirection
) -> tuple[tuple[str, CryptoDirective], ...]:
    """List (field name, directive) pairs a class declares for one direction.

    Args:
        cls: Structure type to inspect
        direction: Which directive kind to collect

    Returns:
        Tuple of (field_name, directive) in declaration order
    """
    found: dict[str, CryptoDirective] = {}

    for name, hint in _own_annotations(cls).items():
        directive = _directive_from_metadata(hint, direction)
        if directive is not None:
            found[name] = directive

    registered = cls.__dict__.get(DIRECTIVES_ATTR, {})
    for name, directive in registered.get(direction, {}).items():
        found[name] = directive

    return tuple(found.items())


def bind_fields(obj: Any, direction: CryptoDirection) -> list[FieldBinding]:
    """Create field bindings for every directive-bearing field of obj."""
    return [
        FieldBinding(owner=obj, name=name, directive=directive)
        for name, directive in declared_directives(type(obj), direction)
    ]


def crypto_fields(
    encrypt: dict[str, FieldEncrypt] | None = None,
    decrypt: dict[str, FieldDecrypt] | None = None,
) -> Callable[[Type[T]], Type[T]]:
    """
    Class decorator registering field directives explicitly.

    Args:
        encrypt: Mapping of field names to encrypt directives
        decrypt: Mapping of field names to decrypt directives

    Example:
        @crypto_fields(encrypt={"ssn": FieldEncrypt(mode=BlockMode.CBC)})
        class Patient:
            def __init__(self, ssn: str):
                self.ssn = ssn
    """
    for name, directive in (encrypt or {}).items():
        if not isinstance(directive, FieldEncrypt):
            raise TypeError(f"Encrypt directive for '{name}' must be a FieldEncrypt")
    for name, directive in (decrypt or {}).items():
        if not isinstance(directive, FieldDecrypt):
            raise TypeError(f"Decrypt directive for '{name}' must be a FieldDecrypt")

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, DIRECTIVES_ATTR, {
            CryptoDirection.ENCRYPT: dict(encrypt or {}),
            CryptoDirection.DECRYPT: dict(decrypt or {}),
        })
        declared_directives.cache_clear()
        return cls

    return decorator
