"""Task parsing and rendering tests."""

from datetime import date

import pytest

from todoline.errors import (
    InvalidDateError,
    MalformedPatternError,
    NoTitleError,
    ParseError,
)
from todoline.extractors import EXTRACTORS
from todoline.todotxt import Task, parse, render, smart_parse, toggle_completed

LINE = "x (A) 2024-08-15 2024-09-20 Hello World +hello @wow due:123"


class TestParse:
    """Tests for Task.parse."""

    def test_full_line(self) -> None:
        """Verify every field of a complete line."""
        task = parse(LINE)

        assert task.completed is True
        assert task.priority == "A"
        assert task.creation_date == date(2024, 8, 15)
        assert task.completion_date == date(2024, 9, 20)
        assert task.title == "Hello World"
        assert task.project == "hello"
        assert task.context == "wow"
        assert task.tags == {"due": "123"}
        assert task.hashtags == []

    def test_raw_content_without_marker(self) -> None:
        """Verify raw content is the line after the completion marker."""
        task = parse(LINE)
        assert task.raw_content == LINE[2:]

    def test_no_title(self) -> None:
        """Verify a line holding only a project fails."""
        with pytest.raises(NoTitleError):
            parse("+onlyaproject")

    def test_invalid_date(self) -> None:
        """Verify impossible dates surface as InvalidDateError."""
        with pytest.raises(InvalidDateError):
            parse("2024-13-01 Task")

    def test_error_hierarchy(self) -> None:
        """Verify data errors are ParseErrors and pattern errors are not."""
        assert issubclass(NoTitleError, ParseError)
        assert issubclass(InvalidDateError, ParseError)
        assert not issubclass(MalformedPatternError, ParseError)

    def test_incomplete_task(self) -> None:
        """Verify a line without marker is not completed."""
        task = parse("(B) Call mom +family @phone")
        assert task.completed is False
        assert task.title == "Call mom"

    def test_marker_needs_whitespace(self) -> None:
        """Verify a word starting with x is not a completion marker."""
        task = parse("xylophone practice")
        assert task.completed is False
        assert task.title == "xylophone practice"

    def test_marker_not_in_title(self) -> None:
        """Verify the stripped marker never appears in the title."""
        task = parse("x Buy milk")
        assert task.completed is True
        assert task.title == "Buy milk"

    def test_fields_come_from_extractor_set(self) -> None:
        """Verify every parsed field is what its extractor returns."""
        task = parse(LINE + " #tag")

        for name, extract in EXTRACTORS.items():
            if name == "dates":
                expected = (task.creation_date, task.completion_date)
                assert extract(task.raw_content) == expected
            else:
                assert extract(task.raw_content) == getattr(task, name)

    def test_lone_marker_has_no_title(self) -> None:
        """Verify `x ` is a completion marker with nothing after it."""
        with pytest.raises(NoTitleError):
            parse("x ")

    def test_title_spacing_kept(self) -> None:
        """Verify runs of spaces inside the title are not rewritten."""
        assert parse("Hello   World").title == "Hello   World"
        assert parse("(A) Hello   World +hi").to_line() == "(A) Hello   World +hi"

    def test_first_project_wins(self) -> None:
        """Verify only the first of several projects is kept."""
        assert parse("Paint +house +garage").project == "house"

    def test_hashtags(self) -> None:
        """Verify hashtags are collected and stay in the title."""
        task = parse("Read book #reading #fun")
        assert task.hashtags == ["#reading", "#fun"]
        assert task.title == "Read book #reading #fun"

    def test_due_date_property(self) -> None:
        """Verify the due tag is exposed as a date."""
        task = parse("Pay rent due:2024-02-01")
        assert task.tags["due"] == "2024-02-01"
        assert task.due_date == date(2024, 2, 1)

    def test_due_date_property_non_date(self) -> None:
        """Verify a non-date due value gives no due date."""
        assert parse(LINE).due_date is None

    def test_default_task(self) -> None:
        """Verify a default task is empty."""
        task = Task()
        assert task.title == ""
        assert task.completed is False
        assert task.priority is None
        assert task.tags == {}
        assert task.to_line() == ""


class TestRender:
    """Tests for Task.to_line."""

    def test_canonical_order(self) -> None:
        """Verify completion date is written before creation date."""
        assert render(parse(LINE)) == (
            "x (A) 2024-09-20 2024-08-15 Hello World +hello @wow due:123"
        )

    def test_no_leading_space(self) -> None:
        """Verify incomplete tasks render without leading whitespace."""
        assert render(parse("(B) Call mom +family")) == "(B) Call mom +family"

    def test_tags_in_insertion_order(self) -> None:
        """Verify tags render in the order they were read."""
        task = parse("Task z:1 a:2 m:3")
        assert task.to_line() == "Task z:1 a:2 m:3"

    def test_reorders_tokens(self) -> None:
        """Verify out-of-order tokens move to their canonical place."""
        task = parse("@home Call +family mom (C)")
        assert task.to_line() == "(C) Call  mom +family @home"

    def test_str(self) -> None:
        """Verify str() renders the line."""
        task = parse("Call mom")
        assert str(task) == "Call mom"


class TestRoundTrip:
    """Tests for parse/render round trips."""

    @pytest.mark.parametrize(
        "line",
        [
            "(A) 2024-01-15 Call mom +family @phone due:2024-02-01",
            "x (B) 2024-03-01 Pay rent +home rent:monthly",
            "Plain task",
            "Read book #reading +books",
            "x Water plants @garden",
        ],
    )
    def test_reparse_is_stable(self, line: str) -> None:
        """Verify re-parsing a rendered task gives the same task."""
        task = parse(line)
        assert parse(render(task)) == task

    def test_two_dates_swap(self) -> None:
        """Verify re-parsing a task with two dates swaps them."""
        task = parse(LINE)
        reparsed = parse(render(task))

        assert reparsed.creation_date == task.completion_date
        assert reparsed.completion_date == task.creation_date
        assert reparsed.title == task.title
        assert reparsed.tags == task.tags


class TestSmartParse:
    """Tests for Task.smart_parse."""

    def test_fills_defaults(self) -> None:
        """Verify missing creation date and priority are filled."""
        task = smart_parse("Call mom", today=date(2024, 1, 1))
        assert task.creation_date == date(2024, 1, 1)
        assert task.priority == "D"

    def test_keeps_existing_values(self) -> None:
        """Verify present values are not replaced."""
        task = smart_parse(
            "x (A) 2024-08-15 2024-09-20 Hello World +hello @wow due:2021-08-15",
            today=date(2000, 1, 1),
        )
        assert task.creation_date == date(2024, 8, 15)
        assert task.priority == "A"

    def test_custom_priority(self) -> None:
        """Verify the default priority is configurable."""
        task = smart_parse("Call mom", today=date(2024, 1, 1), default_priority="C")
        assert task.priority == "C"

    def test_date_provider(self) -> None:
        """Verify a callable provides the creation date."""
        task = smart_parse("Call mom", today=lambda: date(2023, 5, 6))
        assert task.creation_date == date(2023, 5, 6)

    def test_defaults_to_local_date(self) -> None:
        """Verify the local date is used when none is given."""
        before = date.today()
        task = Task.smart_parse("Call mom")
        assert before <= task.creation_date <= date.today()

    def test_title_still_required(self) -> None:
        """Verify smart parsing does not invent a title."""
        with pytest.raises(NoTitleError):
            smart_parse("+onlyaproject", today=date(2024, 1, 1))


class TestMutation:
    """Tests for in-place changes."""

    def test_toggle_twice(self) -> None:
        """Verify toggling twice restores the task."""
        task = parse(LINE)
        original = parse(LINE)

        toggle_completed(task)
        assert task.completed is False
        assert task.title == original.title
        assert task.creation_date == original.creation_date

        toggle_completed(task)
        assert task == original

    def test_refill(self) -> None:
        """Verify re-parsing edited content replaces derived fields."""
        task = parse("Call mom +family")
        task.raw_content = "(A) Call dad +home @phone"
        task.refill()

        assert task.title == "Call dad"
        assert task.project == "home"
        assert task.context == "phone"
        assert task.priority == "A"

    def test_refill_keeps_completion(self) -> None:
        """Verify completion survives a re-parse of marker-free content."""
        task = parse("x Call mom")
        task.refill()
        assert task.completed is True

    def test_dict_conversion(self) -> None:
        """Verify to_dict and from_dict are inverse."""
        task = parse(LINE + " #tag")
        data = task.to_dict()

        assert data["creation_date"] == "2024-08-15"
        assert data["hashtags"] == ["#tag"]
        assert Task.from_dict(data) == task
