"""
Разбор заголовка Range и вычисление окна байт для ответа.

Результат разбора - один из трех вариантов:
FullContent (200), PartialContent (206) или Unsatisfiable (416).
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

BYTES_UNIT = "bytes"

_RANGE_HEADER_RE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9_.-]*)\s*=\s*(.*?)\s*$")
_RANGE_SPEC_RE = re.compile(r"^(\d*)\s*-\s*(\d*)$")


@dataclass(frozen=True)
class RangeRequest:
    """Разобранный заголовок Range. start=None означает суффикс из end байт."""
    unit: str
    start: Optional[int]
    end: Optional[int]

    @property
    def is_suffix(self) -> bool:
        return self.start is None


@dataclass(frozen=True)
class ResolvedWindow:
    """Окно [start, end] включительно, 0 <= start <= end < total_size."""
    start: int
    end: int
    total_size: int

    def __post_init__(self):
        if not 0 <= self.start <= self.end < self.total_size:
            raise ValueError(
                f"invalid window {self.start}-{self.end} for size {self.total_size}"
            )

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"{BYTES_UNIT} {self.start}-{self.end}/{self.total_size}"


@dataclass(frozen=True)
class FullContent:
    total_size: int


@dataclass(frozen=True)
class PartialContent:
    window: ResolvedWindow


@dataclass(frozen=True)
class Unsatisfiable:
    total_size: int

    @property
    def content_range(self) -> str:
        return f"{BYTES_UNIT} */{self.total_size}"


RangeOutcome = Union[FullContent, PartialContent, Unsatisfiable]


def parse_range_header(raw: Optional[str]) -> Optional[RangeRequest]:
    """
    Разбор сырого значения Range.

    Поддерживаются формы start-end, start- и -suffix.
    Если в заголовке несколько диапазонов, берется только первый.
    Нераспознанный синтаксис дает None, как и отсутствующий заголовок.
    """
    if not raw:
        return None

    match = _RANGE_HEADER_RE.match(raw)
    if match is None:
        return None

    unit, specs = match.groups()
    first_spec = specs.split(",", 1)[0].strip()

    spec_match = _RANGE_SPEC_RE.match(first_spec)
    if spec_match is None:
        return None

    start_s, end_s = spec_match.groups()
    if not start_s and not end_s:
        return None

    return RangeRequest(
        unit=unit.lower(),
        start=int(start_s) if start_s else None,
        end=int(end_s) if end_s else None,
    )


def resolve_range(range_request: Optional[RangeRequest], total_size: int) -> RangeOutcome:
    """Вычисление окна ответа по разобранному Range и размеру файла."""
    if range_request is None or range_request.unit != BYTES_UNIT:
        # Незнакомую единицу игнорируем и отдаем файл целиком
        return FullContent(total_size)

    if range_request.is_suffix:
        suffix_length = range_request.end
        start = max(0, total_size - suffix_length)
        end = total_size - 1
        if suffix_length == 0:
            return Unsatisfiable(total_size)
    else:
        start = range_request.start
        if start >= total_size:
            return Unsatisfiable(total_size)
        end = total_size - 1 if range_request.end is None else min(range_request.end, total_size - 1)

    if start > end:
        return Unsatisfiable(total_size)

    return PartialContent(ResolvedWindow(start=start, end=end, total_size=total_size))


def plan_response(raw_range_header: Optional[str], total_size: int) -> RangeOutcome:
    return resolve_range(parse_range_header(raw_range_header), total_size)
