from __future__ import annotations

import inspect
import logging
import re
import textwrap
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


logger = logging.getLogger(__name__)

_QUOTES = frozenset("'\"`")
_OPENERS = frozenset("([{")
_CLOSERS = frozenset(")]}")

# Markers for positional-only / keyword-only boundaries, not parameters.
_SEPARATORS = frozenset({"*", "/"})

_CLASS_HEAD = re.compile(r"\A\s*(?:@[^\n]*\n\s*)*class\b")
_DEF_HEAD = re.compile(r"\b(?:async\s+)?def\s+\w+\s*\(")
_LAMBDA_HEAD = re.compile(r"\blambda\b")
_INDENTED_LINE = re.compile(r"^([ \t]+)\S", re.MULTILINE)
_UNINDENTED_LINE = re.compile(r"^\S", re.MULTILINE)


def get_parameters_names(obj: object) -> list[str]:
    """Return the declared parameter names of a callable, in order.

    `obj` may be a function, lambda, bound method, class, or a string holding
    the source text of one of those. Names are recovered lexically from the
    source: annotations, defaults and comments are stripped, destructured
    groups are kept verbatim as a single token and rest parameters keep their
    stars (`*args`, `**kwargs`). Anything that is not callable, or whose
    parameter list cannot be located, yields an empty list.
    """
    return [token for token in get_parameters_tokens(obj) if token not in _SEPARATORS]


def get_parameters_tokens(obj: object) -> list[str]:
    """Like `get_parameters_names`, keeping the bare `*` and `/` markers.

    The markers tell how each name is passed: names after `*` or `*args` are
    keyword-only.
    """
    if isinstance(obj, str):
        return _parameters_from_source(obj)

    if not callable(obj):
        return []

    if inspect.isclass(obj):
        return _constructor_parameters(obj)

    if inspect.ismethod(obj):
        return _function_parameters(obj.__func__)[1:]

    return _function_parameters(obj)


def _function_parameters(fn: Callable[..., Any]) -> list[str]:
    try:
        source = inspect.getsource(fn)
    except (OSError, TypeError):
        return _signature_parameters(fn)

    prefer_lambda = getattr(fn, "__name__", None) == "<lambda>"
    if prefer_lambda and len(_LAMBDA_HEAD.findall(_mask(source))) > 1:
        # the statement holds several lambdas; the source cannot tell which one is `fn`
        return _signature_parameters(fn)

    return _parameters_from_source(source, prefer_lambda=prefer_lambda)


def _constructor_parameters(cls: type) -> list[str]:
    for klass in cls.__mro__:
        if klass is object:
            break

        init = klass.__dict__.get("__init__")
        if init is None:
            continue

        if not inspect.isfunction(init):
            return _signature_parameters(cls)

        try:
            source = inspect.getsource(init)
        except (OSError, TypeError):
            # e.g. dataclass-generated constructors have no source file
            return _signature_parameters(cls)

        return _parameters_from_source(source)[1:]

    return []


def _signature_parameters(obj: Callable[..., Any]) -> list[str]:
    try:
        sig = inspect.signature(obj)
    except (ValueError, TypeError):
        logger.debug("No source or signature available for %r", obj)
        return []

    logger.debug("Reading parameters of %r from its signature", obj)

    tokens = []
    for p in sig.parameters.values():
        if p.kind is p.VAR_POSITIONAL:
            tokens.append(f"*{p.name}")
        elif p.kind is p.VAR_KEYWORD:
            tokens.append(f"**{p.name}")
        else:
            if p.kind is p.KEYWORD_ONLY and not any(t.startswith("*") for t in tokens):
                tokens.append("*")
            tokens.append(p.name)
    return tokens


def _parameters_from_source(source: str, *, prefer_lambda: bool = False) -> list[str]:
    source = textwrap.dedent(source)
    masked = _mask(source)

    head = _CLASS_HEAD.match(masked)
    if head is not None:
        open_index = _constructor_clause(masked, head.end())
        if open_index is None:
            return []
        params = _enclosed(source, open_index)
        return [] if params is None else _split_parameters(params)[1:]

    params = _parameter_list(source, masked, prefer_lambda=prefer_lambda)
    if params is None:
        return []
    return _split_parameters(params)


def _constructor_clause(masked: str, class_end: int) -> int | None:
    """Offset of the `(` of the class's own `def __init__`, if it has one."""
    for i, ch, depth, _ in _scan(masked[class_end:]):
        if ch == ":" and depth == 0:
            body_start = class_end + i + 1
            break
    else:
        return None

    first_line = _INDENTED_LINE.search(masked, body_start)
    if first_line is None:
        return None

    # nested classes and functions sit deeper than the body's own indentation
    body_end = _UNINDENTED_LINE.search(masked, body_start)
    indent = re.escape(first_line.group(1))
    init = re.compile(rf"^{indent}(?:async\s+)?def\s+__init__\s*\(", re.MULTILINE).search(
        masked, body_start, len(masked) if body_end is None else body_end.start()
    )
    return None if init is None else init.end() - 1


def _parameter_list(source: str, masked: str, *, prefer_lambda: bool) -> str | None:
    definition = _DEF_HEAD.search(masked)
    lambda_head = _LAMBDA_HEAD.search(masked)

    if lambda_head is not None and (prefer_lambda or definition is None):
        start = lambda_head.end()
        for i, ch, depth, quoted in _scan(source[start:]):
            if depth < 0:
                return None
            if ch == ":" and depth == 0 and not quoted:
                return source[start : start + i]
        return None

    if definition is not None:
        return _enclosed(source, definition.end() - 1)

    return None


def _enclosed(source: str, open_index: int) -> str | None:
    """Text between the `(` at `open_index` and its matching `)`."""
    start = open_index + 1
    for i, ch, depth, quoted in _scan(source[start:]):
        if depth < 0 and not quoted:
            return source[start : start + i] if ch == ")" else None
    return None


def _split_parameters(params: str) -> list[str]:
    fragments = []
    start = 0
    for i, ch, depth, quoted in _scan(params):
        if ch == "," and depth == 0 and not quoted:
            fragments.append(params[start:i])
            start = i + 1
    fragments.append(params[start:])

    tokens = (_clean(fragment) for fragment in fragments)
    return [token for token in tokens if token]


def _clean(fragment: str) -> str:
    code = "".join(ch for _, ch, _, _ in _scan(fragment))  # comments are never yielded

    # the first top-level ':' starts an annotation, the first '=' a default
    for i, ch, depth, quoted in _scan(code):
        if ch in ":=" and depth == 0 and not quoted:
            code = code[:i]
            break

    return code.strip()


def _mask(source: str) -> str:
    """Blank out string literals and comments, keeping offsets and line breaks intact."""
    masked = [" "] * len(source)
    for i, ch, _, quoted in _scan(source):
        if not quoted or ch == "\n":
            masked[i] = ch
    return "".join(masked)


def _scan(text: str) -> Iterator[tuple[int, str, int, bool]]:
    """Walk `text` yielding `(index, char, depth, quoted)` outside of comments.

    `depth` is the bracket nesting around the character: an opener and its
    closer both report the depth of the enclosing context, so an unmatched
    closer reports -1. `quoted` is true for every character of a string
    literal, delimiters included. Brackets inside strings do not count.
    """
    depth = 0
    quote: str | None = None
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if quote is not None:
            if ch == "\\" and i + 1 < n:
                yield i, ch, depth, True
                yield i + 1, text[i + 1], depth, True
                i += 2
            elif text.startswith(quote, i):
                for j in range(i, i + len(quote)):
                    yield j, text[j], depth, True
                i += len(quote)
                quote = None
            else:
                yield i, ch, depth, True
                i += 1
            continue

        if ch == "#":
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if ch in _QUOTES:
            quote = ch * 3 if ch != "`" and text.startswith(ch * 3, i) else ch
            for j in range(i, i + len(quote)):
                yield j, text[j], depth, True
            i += len(quote)
            continue

        if ch in _CLOSERS:
            depth -= 1
        yield i, ch, depth, False
        if ch in _OPENERS:
            depth += 1
        i += 1
