"""Tests for record reflection."""

import dataclasses
import enum
from typing import Any, ClassVar, Optional

import pytest
from msgspec import Struct

from sqlbind.core.records import (
    DataclassAdapter,
    MappingAdapter,
    PlainClassAdapter,
    RecordAdapter,
    StructAdapter,
    get_record_adapter,
    is_record_type,
    register_record_adapter,
    zero_value,
)


@dataclasses.dataclass
class Employee:
    employee_id: int
    first_name: str
    salary: float
    active: bool
    manager_id: Optional[int]
    title: str = "Engineer"
    badge: int = dataclasses.field(default=0, init=False)


class EmployeeStruct(Struct):
    employee_id: int
    first_name: str
    salary: float = 1.0


class PlainEmployee:
    registry: ClassVar[dict] = {}
    employeeId: int
    firstName: str
    _secret: str


class Color(enum.Enum):
    RED = 1


@pytest.mark.parametrize(
    ("annotation", "expected"),
    [(int, 0), (float, 0.0), (bool, False), (str, None), (Optional[int], None), (Any, None)],
)
def test_zero_value(annotation: Any, expected: Any) -> None:
    assert zero_value(annotation) == expected
    assert type(zero_value(annotation)) is type(expected)


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [
        (Employee, True),
        (EmployeeStruct, True),
        (PlainEmployee, True),
        (int, False),
        (str, False),
        (dict, False),
        (list, False),
        (list[int], False),
        (Color, False),
        (Any, False),
        (type("Empty", (), {}), False),
    ],
)
def test_is_record_type(candidate: Any, expected: bool) -> None:
    assert is_record_type(candidate) is expected


def test_adapter_selection() -> None:
    assert isinstance(get_record_adapter(Employee), DataclassAdapter)
    assert isinstance(get_record_adapter(EmployeeStruct), StructAdapter)
    assert isinstance(get_record_adapter(dict), MappingAdapter)
    assert isinstance(get_record_adapter(PlainEmployee), PlainClassAdapter)
    assert get_record_adapter(Employee) is get_record_adapter(Employee)


def test_find_member_translates_labels() -> None:
    adapter = get_record_adapter(Employee)

    assert adapter.find_member("employee_id") == "employee_id"
    assert adapter.find_member("EMPLOYEE_ID") == "employee_id"
    assert adapter.find_member("firstName") == "first_name"
    assert adapter.find_member("unknown") is None

    plain = get_record_adapter(PlainEmployee)
    assert plain.members() == ("employeeId", "firstName")
    assert plain.find_member("EMPLOYEE_ID") == "employeeId"


def test_dataclass_construct_fills_missing_members() -> None:
    record = get_record_adapter(Employee).construct({"employee_id": 5, "badge": 9})

    expected = Employee(5, None, 0.0, False, None)  # type: ignore[arg-type]
    expected.badge = 9
    assert record == expected
    assert record.title == "Engineer"


def test_struct_construct_keeps_defaults() -> None:
    record = get_record_adapter(EmployeeStruct).construct({"first_name": "Ada"})

    assert record == EmployeeStruct(employee_id=0, first_name="Ada", salary=1.0)


def test_plain_construct() -> None:
    record = get_record_adapter(PlainEmployee).construct({"firstName": "Ada"})

    assert record.firstName == "Ada"
    assert record.employeeId == 0


def test_register_record_adapter() -> None:
    class Point:
        def __init__(self, x: int = 0, y: int = 0) -> None:
            self.x = x
            self.y = y

    class PointAdapter(RecordAdapter):
        def members(self) -> "tuple[str, ...]":
            return ("x", "y")

        def member_type(self, member: str) -> Any:
            return int

        def get(self, record: Any, member: str) -> Any:
            return getattr(record, member)

        def construct(self, values: "dict[str, Any]") -> Any:
            return Point(**values)

    assert not is_record_type(Point)
    adapter = register_record_adapter(Point, PointAdapter(Point))

    assert is_record_type(Point)
    assert get_record_adapter(Point) is adapter
    assert adapter.construct({"x": 1, "y": 2}).y == 2
