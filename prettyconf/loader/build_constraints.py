"""Go build constraint evaluation for source file selection."""

from __future__ import annotations

import os
import platform
import re
import sys
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

KNOWN_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "js",
        "linux",
        "nacl",
        "netbsd",
        "openbsd",
        "plan9",
        "solaris",
        "wasip1",
        "windows",
        "zos",
    }
)
KNOWN_ARCH = frozenset(
    {
        "386",
        "amd64",
        "amd64p32",
        "arm",
        "armbe",
        "arm64",
        "arm64be",
        "loong64",
        "mips",
        "mipsle",
        "mips64",
        "mips64le",
        "mips64p32",
        "mips64p32le",
        "ppc",
        "ppc64",
        "ppc64le",
        "riscv",
        "riscv64",
        "s390",
        "s390x",
        "sparc",
        "sparc64",
        "wasm",
    }
)
UNIX_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "linux",
        "netbsd",
        "openbsd",
        "solaris",
    }
)

# GOOS values that also satisfy another GOOS tag and file suffix.
_OS_IMPLIES = {"android": "linux", "illumos": "solaris", "ios": "darwin"}

_HOST_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

_RELEASE_TAG = re.compile(r"^go1\.[0-9]+$")
_TOKEN = re.compile(r"\s*(\(|\)|!|&&|\|\||[A-Za-z0-9_.]+)")


@dataclass(frozen=True)
class BuildContext:
    """Target platform and extra tags that decide which files form a package."""

    goos: str
    goarch: str
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def default(cls, tags: FrozenSet[str] | None = None) -> "BuildContext":
        """Return the context named by ``GOOS``/``GOARCH`` or, failing that, the host."""
        goos = os.environ.get("GOOS") or _host_os()
        goarch = os.environ.get("GOARCH") or _HOST_ARCH.get(platform.machine().lower(), "amd64")
        return cls(goos=goos, goarch=goarch, tags=frozenset(tags or ()))

    def matches_tag(self, tag: str) -> bool:
        if tag in self.tags or tag in {self.goos, self.goarch, "gc"}:
            return True
        if tag == "unix":
            return self.goos in UNIX_OS
        if _OS_IMPLIES.get(self.goos) == tag:
            return True
        return bool(_RELEASE_TAG.match(tag))

    def matches_file_name(self, name: str) -> bool:
        """Apply the ``_GOOS``, ``_GOARCH`` and ``_GOOS_GOARCH`` file name suffixes."""
        if name.startswith(("_", ".")):
            return False
        stem = name[: -len(".go")] if name.endswith(".go") else name
        if stem.endswith("_test"):
            stem = stem[: -len("_test")]
        parts = stem.split("_")[1:]
        if len(parts) >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
            return self._matches_os(parts[-2]) and parts[-1] == self.goarch
        if parts and parts[-1] in KNOWN_OS:
            return self._matches_os(parts[-1])
        if parts and parts[-1] in KNOWN_ARCH:
            return parts[-1] == self.goarch
        return True

    def allows(self, source: bytes) -> bool:
        """Evaluate the build constraints in the header of a Go file.

        A ``//go:build`` line takes precedence over ``// +build`` lines.
        Constraints that cannot be parsed exclude the file.
        """
        go_build, plus_build = _header_constraints(source)
        if go_build is not None:
            try:
                return _ExpressionParser(go_build, self.matches_tag).parse()
            except ValueError:
                return False
        return all(self._plus_build_line(line) for line in plus_build)

    def _matches_os(self, goos: str) -> bool:
        return goos == self.goos or _OS_IMPLIES.get(self.goos) == goos

    def _plus_build_line(self, line: str) -> bool:
        # Space-separated options are ORed; comma-separated terms are ANDed.
        for option in line.split():
            if all(self._plus_build_term(term) for term in option.split(",")):
                return True
        return False

    def _plus_build_term(self, term: str) -> bool:
        if term.startswith("!"):
            name = term[1:]
            return bool(name) and not self.matches_tag(name)
        return bool(term) and self.matches_tag(term)


def _header_constraints(source: bytes) -> tuple[Optional[str], List[str]]:
    go_build: Optional[str] = None
    plus_build: List[str] = []
    text = source.decode("utf-8", errors="replace")
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if not line.startswith("//"):
            break
        body = line[2:]
        if body.startswith("go:build ") and go_build is None:
            go_build = body[len("go:build ") :].strip()
        elif body.strip().startswith("+build "):
            plus_build.append(body.strip()[len("+build ") :])
    return go_build, plus_build


class _ExpressionParser:
    """Recursive descent over ``||``, ``&&``, ``!`` and parentheses."""

    def __init__(self, text: str, matches_tag) -> None:
        self._tokens = _tokenize(text)
        self._position = 0
        self._matches_tag = matches_tag

    def parse(self) -> bool:
        value = self._or()
        if self._position != len(self._tokens):
            raise ValueError(f"unexpected token {self._tokens[self._position]!r}")
        return value

    def _peek(self) -> Optional[str]:
        return self._tokens[self._position] if self._position < len(self._tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ValueError("unexpected end of build constraint")
        self._position += 1
        return token

    def _or(self) -> bool:
        value = self._and()
        while self._peek() == "||":
            self._take()
            # Evaluate both sides so syntax errors surface regardless of value.
            right = self._and()
            value = value or right
        return value

    def _and(self) -> bool:
        value = self._not()
        while self._peek() == "&&":
            self._take()
            right = self._not()
            value = value and right
        return value

    def _not(self) -> bool:
        if self._peek() == "!":
            self._take()
            return not self._not()
        return self._atom()

    def _atom(self) -> bool:
        token = self._take()
        if token == "(":
            value = self._or()
            if self._take() != ")":
                raise ValueError("missing ) in build constraint")
            return value
        if token in {")", "&&", "||"}:
            raise ValueError(f"unexpected token {token!r}")
        return self._matches_tag(token)


def _tokenize(text: str) -> List[str]:
    tokens: List[str] = []
    position = 0
    text = text.rstrip()
    while position < len(text):
        match = _TOKEN.match(text, position)
        if match is None:
            raise ValueError(f"invalid build constraint {text!r}")
        tokens.append(match.group(1))
        position = match.end()
    return tokens


def _host_os() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "darwin"
    for name in ("freebsd", "openbsd", "netbsd", "dragonfly", "aix"):
        if sys.platform.startswith(name):
            return name
    return "linux"


__all__ = ["BuildContext", "KNOWN_ARCH", "KNOWN_OS", "UNIX_OS"]
