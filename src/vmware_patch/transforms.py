"""Pure, idempotent content transforms used by the terminal migration."""

from __future__ import annotations

import re
from functools import reduce
from typing import Callable

from .patching import Transform

__all__ = [
    "chain",
    "pin_renderer",
    "replace_env_terminal",
    "replace_terminal_binding",
    "rewrite_menu_terminal",
    "text_transform",
]

RENDERER_VAR = "GSK_RENDERER"

_CLASS_OPTION = re.compile(r"--class(?:=| )\s*\S+")
_INNER_SPACING = re.compile(r"(\S)\s{2,}")
# Names like ``ghostty-git`` must not match ``ghostty``, or a target that
# extends the source would grow on every run.
_WORD_START = r"(?<![\w-])"
_WORD_END = r"(?![\w-])"


def text_transform(func: Callable[[str], str], *, encoding: str = "utf-8") -> Transform:
    """Lift a ``str -> str`` function into a ``bytes -> bytes`` transform."""

    def apply(content: bytes) -> bytes:
        text = content.decode(encoding, errors="surrogateescape")
        updated = func(text)
        if updated == text:
            return content
        return updated.encode(encoding, errors="surrogateescape")

    return apply


def chain(*transforms: Transform) -> Transform:
    """Compose transforms so they run left to right."""

    def apply(content: bytes) -> bytes:
        return reduce(lambda acc, step: step(acc), transforms, content)

    return apply


def replace_terminal_binding(source: str, target: str) -> Transform:
    """Point Hyprland's ``$terminal`` binding at ``target`` instead of ``source``."""
    binding = re.compile(re.escape(f"$terminal = uwsm app -- {source}") + _WORD_END)
    new = f"$terminal = uwsm app -- {target}"

    def rewrite(text: str) -> str:
        return binding.sub(lambda _: new, text)

    return text_transform(rewrite)


def rewrite_menu_terminal(source: str, target: str) -> Transform:
    """Rewrite launcher lines in the omarchy menu script.

    Only lines mentioning ``source`` are touched. On those lines the terminal
    name is swapped, ``--class`` options are dropped (they are alacritty
    specific), and the gaps left behind are collapsed to single spaces while
    leading indentation is kept.
    """
    word = re.compile(_WORD_START + re.escape(source) + _WORD_END)

    def rewrite_line(line: str) -> str:
        if source not in line:
            return line
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        body = word.sub(lambda _: target, body)
        body = _CLASS_OPTION.sub("", body)
        return _INNER_SPACING.sub(r"\1 ", body) + ending

    def rewrite(text: str) -> str:
        return "".join(rewrite_line(line) for line in text.splitlines(keepends=True))

    return text_transform(rewrite)


def pin_renderer(value: str, *, variable: str = RENDERER_VAR) -> Transform:
    """Ensure exactly one ``export <variable>=<value>`` line exists."""
    prefix = f"export {variable}="
    wanted = f"{prefix}{value}"

    def rewrite(text: str) -> str:
        lines = text.splitlines(keepends=True)
        output: list[str] = []
        seen = False
        for line in lines:
            if not line.startswith(prefix):
                output.append(line)
                continue
            if seen:
                continue
            seen = True
            ending = line[len(line.rstrip("\r\n")):] or "\n"
            output.append(wanted + ending)
        if not seen:
            output.insert(0, wanted + "\n")
        return "".join(output)

    return text_transform(rewrite)


def replace_env_terminal(source: str, target: str) -> Transform:
    """Swap an exact ``export TERMINAL=<source>`` line for ``<target>``."""
    old = f"export TERMINAL={source}"
    new = f"export TERMINAL={target}"

    def rewrite(text: str) -> str:
        lines = text.splitlines(keepends=True)
        for index, line in enumerate(lines):
            body = line.rstrip("\r\n")
            if body == old:
                lines[index] = new + line[len(body):]
        return "".join(lines)

    return text_transform(rewrite)
