# -*- coding: utf-8 -*-
"""
语义化版本与版本范围

版本字符串按 SemVer 2.0 解析：MAJOR.MINOR.PATCH 部分交给 packaging 比较，
预发布标识按 SemVer 2.0 的优先级规则比较。版本范围支持 npm 风格的写法
（^、~、x 通配、连字符区间、||）。PEP 440 写法（==、!=、~=、===）交给
packaging 的 SpecifierSet，只作用于版本的 MAJOR.MINOR.PATCH 部分。

    satisfies("1.4.2", "^1.2.0")          # True
    satisfies("2.0.0", "~1.2 || >=2.0.0")  # True

与 npm 一致，预发布版本只有在同一比较器集合中存在相同 MAJOR.MINOR.PATCH
且带预发布标识的比较器时才可能满足范围：

    satisfies("1.2.3-beta.3", "^1.2.3-beta.2")  # True
    satisfies("1.2.4-beta.3", "^1.2.3-beta.2")  # False
"""

import operator
import re
from functools import lru_cache, total_ordering
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from packaging.specifiers import InvalidSpecifier, Specifier, SpecifierSet
from packaging.version import Version

from ..exceptions import InvalidRangeError, InvalidVersionError

__all__ = [
    "SemanticVersion",
    "ComparatorSet",
    "parse_version",
    "parse_range",
    "satisfies",
    "is_valid_version",
]

_PRERELEASE_IDENTIFIER = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_PRERELEASE = rf"{_PRERELEASE_IDENTIFIER}(?:\.{_PRERELEASE_IDENTIFIER})*"
_BUILD = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

SEMVER_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<prerelease>{_PRERELEASE}))?"
    rf"(?:\+(?P<build>{_BUILD}))?$",
    re.ASCII,
)

_PARTIAL_PATTERN = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*]))?"
    r"(?:\.(?P<patch>\d+|[xX*]))?"
    rf"(?:-(?P<prerelease>{_PRERELEASE}))?"
    rf"(?:\+{_BUILD})?$",
    re.ASCII,
)

_COMPARATOR_PATTERN = re.compile(r"^(?P<op>\^|~>|~|>=|<=|>|<|=)?(?P<version>.*)$")
_PEP440_OPERATORS = ("===", "==", "!=", "~=")
_OPERATOR_SPACING = re.compile(r"(===|==|!=|~=|>=|<=|~>|[<>=~^])\s+")
_HYPHEN_RANGE = re.compile(r"^(?P<lower>\S+)\s+-\s+(?P<upper>\S+)$")

Identifier = Union[int, str]
Partial = Tuple[Optional[int], Optional[int], Optional[int], Tuple[Identifier, ...]]

_COMPARE: Dict[str, Callable[[object, object], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
}


@total_ordering
class SemanticVersion:
    """
    语义化版本

    release 是 packaging 的 Version（只含 MAJOR.MINOR.PATCH），prerelease 保存
    点分隔的预发布标识，数字标识已转换为 int。构建元数据不参与比较。
    """

    __slots__ = ("release", "prerelease", "build")

    def __init__(
        self,
        release: Version,
        prerelease: Sequence[Identifier] = (),
        build: Optional[str] = None,
    ):
        self.release = release
        self.prerelease = tuple(prerelease)
        self.build = build

    @property
    def major(self) -> int:
        return self.release.major

    @property
    def minor(self) -> int:
        return self.release.minor

    @property
    def patch(self) -> int:
        return self.release.micro

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self):
        # 没有预发布标识的版本高于同一 MAJOR.MINOR.PATCH 的任何预发布版本；
        # 数字标识低于字母标识，前缀相同时标识更多的版本更高
        identifiers = tuple(
            (0, part) if isinstance(part, int) else (1, part) for part in self.prerelease
        )
        return (self.release, 0 if self.prerelease else 1, identifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += f"+{self.build}"
        return text

    def __repr__(self) -> str:
        return f"SemanticVersion({str(self)!r})"


Comparator = Tuple[str, SemanticVersion]


class ComparatorSet:
    """
    比较器集合：版本必须同时满足其中所有比较器

    comparators 来自 npm 风格写法，specifiers 来自 PEP 440 写法。
    """

    __slots__ = ("comparators", "specifiers")

    def __init__(self, comparators: Sequence[Comparator], specifiers: SpecifierSet):
        self.comparators = tuple(comparators)
        self.specifiers = specifiers

    def contains(self, version: SemanticVersion) -> bool:
        for op, bound in self.comparators:
            if not _COMPARE[op](version, bound):
                return False
        if not self.specifiers.contains(version.release):
            return False

        if version.prerelease:
            return any(
                bound.prerelease and bound.release == version.release
                for _, bound in self.comparators
            )
        return True

    def __repr__(self) -> str:
        clauses = [f"{op}{bound}" for op, bound in self.comparators]
        clauses.extend(str(specifier) for specifier in self.specifiers)
        return f"ComparatorSet({' '.join(clauses)!r})"


def parse_version(text: Union[str, SemanticVersion]) -> SemanticVersion:
    """
    解析语义化版本

    Args:
        text: MAJOR.MINOR.PATCH[-prerelease][+build] 形式的字符串

    Returns:
        语义化版本对象

    Raises:
        InvalidVersionError: 不是合法的 SemVer 2.0 版本
    """
    if isinstance(text, SemanticVersion):
        return text
    if not isinstance(text, str):
        raise InvalidVersionError(text, "版本必须是字符串")

    match = SEMVER_PATTERN.match(text.strip())
    if not match:
        raise InvalidVersionError(text)

    release = Version("{major}.{minor}.{patch}".format(**match.groupdict()))
    return SemanticVersion(release, _split_prerelease(match.group("prerelease")), match.group("build"))


def is_valid_version(text: object) -> bool:
    try:
        parse_version(text)
    except InvalidVersionError:
        return False
    return True


def parse_range(text: str) -> List[ComparatorSet]:
    """
    解析版本范围

    Args:
        text: 版本范围表达式，|| 分隔的每一段都是一个比较器集合

    Returns:
        比较器集合列表，版本满足其中任意一个即视为满足范围

    Raises:
        InvalidRangeError: 表达式无法解析
    """
    if not isinstance(text, str):
        raise InvalidRangeError(text, "版本范围必须是字符串")
    return list(_compile_range(text.strip()))


def satisfies(version: Union[str, SemanticVersion], range: str) -> bool:
    """
    判断版本是否满足范围

    Raises:
        InvalidVersionError: 版本无效
        InvalidRangeError: 范围无效
    """
    parsed = parse_version(version)
    return any(comparators.contains(parsed) for comparators in parse_range(range))


@lru_cache(maxsize=256)
def _compile_range(text: str) -> Tuple[ComparatorSet, ...]:
    return tuple(_compile_set(part.strip(), text) for part in text.split("||"))


def _compile_set(text: str, original: str) -> ComparatorSet:
    comparators: List[Comparator] = []
    specifiers: List[str] = []

    hyphen = _HYPHEN_RANGE.match(text)
    if hyphen:
        comparators.extend(_hyphen_comparators(hyphen.group("lower"), hyphen.group("upper"), original))
    else:
        normalized = _OPERATOR_SPACING.sub(r"\1", text.replace(",", " "))
        for token in normalized.split():
            if token.startswith(_PEP440_OPERATORS):
                try:
                    Specifier(token)
                except InvalidSpecifier:
                    raise InvalidRangeError(original, f"无法解析 {token}")
                specifiers.append(token)
            else:
                comparators.extend(_comparators(token, original))

    return ComparatorSet(comparators, SpecifierSet(",".join(specifiers)))


def _comparators(token: str, original: str) -> List[Comparator]:
    match = _COMPARATOR_PATTERN.match(token)
    op = match.group("op") or ""
    partial = _parse_partial(match.group("version"), original)
    major, minor, patch, _ = partial

    if major is None:
        # >* 和 <* 不匹配任何版本
        return [("<", _release(0, 0, 0))] if op in ("<", ">") else []

    base = _lower_bound(partial)
    if op == "^":
        return [(">=", base), ("<", _caret_upper(major, minor, patch))]
    if op in ("~", "~>"):
        return [(">=", base), ("<", _next(major, minor))]

    if minor is not None and patch is not None:
        return [("=" if op in ("", "=") else op, base)]

    upper = _next(major, minor)
    if op in ("", "="):
        return [(">=", base), ("<", upper)]
    if op == ">":
        return [(">=", upper)]
    if op == ">=":
        return [(">=", base)]
    if op == "<":
        return [("<", base)]
    return [("<", upper)]


def _hyphen_comparators(lower: str, upper: str, original: str) -> List[Comparator]:
    comparators = []

    low = _parse_partial(lower, original)
    if low[0] is not None:
        comparators.append((">=", _lower_bound(low)))

    high = _parse_partial(upper, original)
    major, minor, patch, _ = high
    if major is not None:
        if minor is not None and patch is not None:
            comparators.append(("<=", _lower_bound(high)))
        else:
            comparators.append(("<", _next(major, minor)))
    return comparators


def _parse_partial(text: str, original: str) -> Partial:
    if not text:
        return (None, None, None, ())
    match = _PARTIAL_PATTERN.match(text)
    if not match:
        raise InvalidRangeError(original, f"无法解析版本 {text!r}")

    def number(name: str) -> Optional[int]:
        value = match.group(name)
        if value is None or value in ("x", "X", "*"):
            return None
        return int(value)

    major, minor, patch = number("major"), number("minor"), number("patch")
    # 通配符之后的部分一律视为通配
    if major is None:
        minor = None
    if minor is None:
        patch = None

    prerelease = _split_prerelease(match.group("prerelease")) if patch is not None else ()
    return (major, minor, patch, prerelease)


def _split_prerelease(text: Optional[str]) -> Tuple[Identifier, ...]:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


def _release(major: int, minor: int, patch: int) -> SemanticVersion:
    return SemanticVersion(Version(f"{major}.{minor}.{patch}"))


def _lower_bound(partial: Partial) -> SemanticVersion:
    major, minor, patch, prerelease = partial
    return SemanticVersion(Version(f"{major}.{minor or 0}.{patch or 0}"), prerelease)


def _next(major: int, minor: Optional[int]) -> SemanticVersion:
    if minor is None:
        return _release(major + 1, 0, 0)
    return _release(major, minor + 1, 0)


def _caret_upper(major: int, minor: Optional[int], patch: Optional[int]) -> SemanticVersion:
    if major > 0 or minor is None:
        return _release(major + 1, 0, 0)
    if minor > 0 or patch is None:
        return _release(0, minor + 1, 0)
    return _release(0, 0, patch + 1)
