import pytest

from ovskit.ovs.table import InvalidTableError, Table, parse_table


def _dump(head, first, second):
    """Build a two-line table entry the way 'ovs-ofctl dump-tables' lays it out."""
    return f"\n    {head} {', '.join(first)}\n        {', '.join(second)}\n"


@pytest.mark.parametrize(
    "text",
    [
        "",
        _dump("0: classifier:", ["wild=0x1ffff", "max=500000", "active=0"], ["lookup=0,"]),
        _dump(
            "1: table1 :",
            ["wild=0x1ffff", "max=500000", "active=0"],
            ["lookup=0", "matched=0", "extra=0"],
        ),
        _dump("0: classifier:", ["wild 0x1ffff", "max=500000", "active=0"], ["lookup=0", "matched=0"]),
    ],
    ids=["empty string", "too few fields", "too many fields", "broken key=value pair"],
)
def test_invalid_layout(text):
    with pytest.raises(InvalidTableError):
        parse_table(text)


def test_invalid_integer_id():
    text = _dump("bad: classifier:", ["wild=0x1ffff", "max=500000", "active=0"], ["lookup=0", "matched=0"])
    with pytest.raises(ValueError, match="bad") as info:
        parse_table(text)
    assert not isinstance(info.value, InvalidTableError)


def test_invalid_integer_max():
    text = _dump("0: classifier:", ["wild=0x1ffff", "max=bad", "active=0"], ["lookup=0", "matched=0"])
    with pytest.raises(ValueError, match="bad") as info:
        parse_table(text)
    assert not isinstance(info.value, InvalidTableError)


def test_ok_classifier_table():
    text = _dump("0: classifier:", ["wild=0x1ffff", "max=500000", "active=1"], ["lookup=2", "matched=3"])
    assert parse_table(text) == Table(
        id=0,
        name="classifier",
        wild="0x1ffff",
        max=500000,
        active=1,
        lookup=2,
        matched=3,
    )


def test_ok_table():
    text = _dump("1: table1 :", ["wild=0x1ffff", "max=500000", "active=1"], ["lookup=2", "matched=3"])
    assert parse_table(text) == Table(
        id=1,
        name="table1",
        wild="0x1ffff",
        max=500000,
        active=1,
        lookup=2,
        matched=3,
    )


def test_seven_fields_with_separate_colon_is_invalid():
    text = "1: table1 : wild=0x3fffff, max=1000000, active=1 lookup=2,"
    with pytest.raises(InvalidTableError):
        parse_table(text)


def test_accepts_bytes():
    text = b"5: classifier: wild=0x1, max=10, active=2 lookup=3, matched=4"
    table = parse_table(text)
    assert (table.id, table.wild, table.matched) == (5, "0x1", 4)