"""Helpers that flatten type annotations into the strings the type resolver reads.

Every analyzer hands the raw source text of a type node to ``simplify_type``.
Working on text keeps the rules identical across grammars and grammar versions.
"""

import re
from typing import List, Optional, Tuple

_WHITESPACE_RE = re.compile(r"\s+")
_DOTTED_NAME_RE = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")

_OPENERS = {"<": ">", "[": "]", "(": ")", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}

NULLISH_TYPES = frozenset({"None", "null", "undefined", "NoneType"})

# Single-argument containers whose elements are modelled as `Elem[]`
COLLECTION_TYPES = frozenset({
    # python
    "List", "list", "Sequence", "MutableSequence", "Iterable", "Iterator",
    "Collection", "Set", "set", "FrozenSet", "frozenset", "AbstractSet",
    "MutableSet", "Deque", "deque", "Generator",
    # typescript / javascript
    "Array", "ReadonlyArray",
    # java
    "ArrayList", "LinkedList", "HashSet", "LinkedHashSet", "TreeSet",
    "SortedSet", "Queue", "Stack", "Vector",
})

# Wrappers that do not change what the property refers to
TRANSPARENT_WRAPPERS = frozenset({"Optional", "ClassVar", "Final", "Annotated", "Required", "NotRequired"})


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on `separator` only where it is not nested inside brackets."""
    parts: List[str] = []
    depth = 0
    current = []
    for ch in text:
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [p for p in parts if p]


def parse_generic(text: str) -> Optional[Tuple[str, List[str]]]:
    """Split `Base<A, B>` or `Base[A, B]` into its base name and arguments."""
    if not text or text[-1] not in (">", "]"):
        return None
    for index, ch in enumerate(text):
        if ch in ("<", "["):
            base = text[:index].strip()
            if not _DOTTED_NAME_RE.match(base) or _OPENERS[ch] != text[-1]:
                return None
            depth = 0
            for pos in range(index, len(text)):
                c = text[pos]
                if c in _OPENERS:
                    depth += 1
                elif c in _CLOSERS:
                    depth -= 1
                    if depth == 0 and pos != len(text) - 1:
                        return None
            args = split_top_level(text[index + 1:-1])
            return (base, args) if args else None
    return None


def short_name(dotted: str) -> str:
    return dotted.rsplit(".", 1)[-1]


def is_class_var(text: Optional[str]) -> bool:
    """True for Python `ClassVar[...]` annotations."""
    if not text:
        return False
    generic = parse_generic(collapse_whitespace(text))
    return bool(generic) and short_name(generic[0]) == "ClassVar"


def _is_parenthesized(text: str) -> bool:
    """True when the outer parentheses of `(A | B)` enclose the whole text."""
    if not (text.startswith("(") and text.endswith(")")):
        return False
    depth = 0
    for pos, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0 and pos != len(text) - 1:
                return False
    return True


def _strip_wildcard(arg: str) -> str:
    for prefix in ("? extends ", "? super "):
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return arg


def simplify_type(text: Optional[str], dialect: str = "typescript") -> Optional[str]:
    """Normalize a raw type annotation.

    Nullable wrappers are dropped, single-element collections become `Elem[]`
    and everything else keeps its generic form (`<>` for Java/TypeScript,
    `[]` for Python).
    """
    if text is None:
        return None
    text = collapse_whitespace(text)
    if dialect == "python":
        text = text.replace('"', "").replace("'", "")
    if text.startswith("readonly "):
        text = text[len("readonly "):]
    while _is_parenthesized(text):
        text = text[1:-1].strip()
    if not text:
        return None

    members = split_top_level(text, "|")
    if len(members) > 1:
        kept = [m for m in members if m not in NULLISH_TYPES]
        if len(kept) == 1:
            return simplify_type(kept[0], dialect)
        return " | ".join(simplify_type(m, dialect) or m for m in kept)

    if text.endswith("[]"):
        inner = simplify_type(text[:-2], dialect)
        return f"{inner}[]" if inner else None

    generic = parse_generic(text)
    if generic is None:
        return text

    base, args = generic
    name = short_name(base)
    args = [_strip_wildcard(a) for a in args]
    if name in TRANSPARENT_WRAPPERS and args:
        return simplify_type(args[0], dialect)
    if name == "Union":
        kept = [a for a in args if a not in NULLISH_TYPES]
        if len(kept) == 1:
            return simplify_type(kept[0], dialect)
    if name in COLLECTION_TYPES and len(args) == 1:
        inner = simplify_type(args[0], dialect)
        return f"{inner}[]" if inner else None
    if name in ("Tuple", "tuple") and len(args) == 2 and args[1] == "...":
        inner = simplify_type(args[0], dialect)
        return f"{inner}[]" if inner else None

    opener, closer = ("[", "]") if dialect == "python" else ("<", ">")
    inner_args = [simplify_type(a, dialect) or a for a in args]
    return f"{base}{opener}{', '.join(inner_args)}{closer}"
