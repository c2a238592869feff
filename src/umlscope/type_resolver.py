"""Heuristic resolution of type strings to user classes.

``resolve_type_info`` is deterministic and has no knowledge of other files:
a type is treated as a user class when it is not primitive, not a known
built-in and its base name starts with an uppercase letter.
"""

import re
from typing import Iterable, Optional, Tuple

from .models import ResolvedTypeInfo
from .treesitter.models import ImportInfo
from .treesitter.type_names import COLLECTION_TYPES, collapse_whitespace, parse_generic, short_name

# Compared case-insensitively
PRIMITIVE_TYPES = frozenset({
    # typescript / javascript
    "string", "number", "boolean", "null", "undefined", "void", "never", "bigint", "symbol", "object",
    # python
    "str", "int", "float", "bool", "bytes", "bytearray", "complex", "none", "nonetype",
    # java
    "char", "byte", "short", "long", "double", "integer", "character",
})

BUILTIN_TYPES = frozenset({
    # typescript / javascript
    "Array", "ReadonlyArray", "Map", "ReadonlyMap", "Set", "ReadonlySet", "WeakMap", "WeakSet",
    "Promise", "PromiseLike", "Date", "RegExp", "Error", "Function", "Record", "Partial",
    "Required", "Readonly", "Pick", "Omit", "Exclude", "Extract", "NonNullable", "ReturnType",
    "Iterable", "Iterator", "AsyncIterable", "AsyncIterator", "Generator", "AsyncGenerator",
    "HTMLElement", "Element", "Event", "Buffer", "JSX",
    # python
    "List", "Dict", "Set", "FrozenSet", "Tuple", "Optional", "Union", "Any", "Callable",
    "Sequence", "MutableSequence", "Mapping", "MutableMapping", "Collection", "Type",
    "Awaitable", "Coroutine", "Literal", "ClassVar", "Final", "Deque", "DefaultDict",
    "OrderedDict", "Counter", "ChainMap", "TypeVar", "Self", "NoReturn", "Never",
    "Path", "PurePath", "Decimal", "Enum", "IntEnum", "Exception", "BaseException",
    "ValueError", "TypeError", "KeyError", "RuntimeError",
    # java
    "Object", "Integer", "Long", "Double", "Float", "Short", "Byte", "Character", "Boolean",
    "Void", "Number", "ArrayList", "LinkedList", "HashMap", "TreeMap", "LinkedHashMap",
    "HashSet", "TreeSet", "LinkedHashSet", "Queue", "Deque", "Stack", "Vector", "Optional",
    "Stream", "CompletableFuture", "Future", "BigDecimal", "BigInteger", "LocalDate",
    "LocalDateTime", "Instant", "Duration", "UUID", "Class", "Runnable", "Supplier",
    "Consumer", "BiFunction", "Predicate", "Throwable", "RuntimeException", "StringBuilder",
})

UNRESOLVABLE_TYPES = frozenset({"any", "unknown"})

_CLASS_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9_]*$")
_INTERFACE_NAME_RE = re.compile(r"^I[A-Z]")


def _match_import(type_name: str, qualifier: Optional[str],
                  imports: Iterable[ImportInfo]) -> Tuple[bool, Optional[str]]:
    head = qualifier.split(".", 1)[0] if qualifier else None
    for imp in imports:
        if type_name in imp.specifiers:
            return True, imp.source
        if head and imp.namespace_alias == head:
            return True, imp.source
    return False, None


def resolve_type_info(type_string: Optional[str],
                      imports: Iterable[ImportInfo] = ()) -> Optional[ResolvedTypeInfo]:
    """Resolve a raw type string against a file's imports.

    Returns None for missing and wildcard types (`any`, `unknown`).
    """
    if not type_string:
        return None
    text = collapse_whitespace(type_string)
    if not text or text.lower() in UNRESOLVABLE_TYPES:
        return None

    is_array = False
    generic_args = []
    while True:
        while text.endswith("[]"):
            is_array = True
            text = text[:-2].strip()
        generic = parse_generic(text)
        if generic is None:
            break
        base, args = generic
        if short_name(base) in COLLECTION_TYPES and len(args) == 1:
            is_array = True
            text = args[0]
            continue
        text, generic_args = base, args
        break

    if text == "Array":
        is_array = True
    if not text or text.lower() in UNRESOLVABLE_TYPES:
        return None

    qualifier, _, type_name = text.rpartition(".")
    qualifier = qualifier or None
    is_primitive = type_name.lower() in PRIMITIVE_TYPES
    is_builtin = type_name in BUILTIN_TYPES
    is_class_type = not is_primitive and not is_builtin and bool(_CLASS_NAME_RE.match(type_name))
    is_external, source_module = _match_import(type_name, qualifier, imports)

    return ResolvedTypeInfo(
        type_name=type_name,
        qualifier=qualifier,
        is_array=is_array,
        is_primitive=is_primitive,
        is_builtin=is_builtin,
        is_class_type=is_class_type,
        is_interface_type=is_class_type and bool(_INTERFACE_NAME_RE.match(type_name)),
        is_external=is_external,
        source_module=source_module,
        generic_args=generic_args,
    )
