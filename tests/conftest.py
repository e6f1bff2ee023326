"""Pytest configuration and fixtures."""

import random

import pytest

from vello.builder import TemplateBuilderStore
from vello.models import (
    BlockStyle,
    ContainerBlock,
    ContainerBlockProperties,
    TableBlock,
    TableBlockProperties,
    TableCell,
    TableRow,
    TextBlock,
    TextBlockProperties,
)


class FakeTimer:
    """Timer handle that only fires when the test says so."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for a timer scheduler."""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if not t.cancelled]

    def run_pending(self):
        """Fire every timer that has not been cancelled."""
        for timer in self.active:
            timer.callback()


@pytest.fixture
def scheduler():
    """Fake timer scheduler."""
    return FakeScheduler()


@pytest.fixture
def store():
    """Store with deterministic block ids."""
    return TemplateBuilderStore(rng=random.Random(42))


@pytest.fixture
def make_text():
    """Factory for text blocks with explicit geometry."""

    def _make(block_id, x=0, y=0, width=100, height=40, content="Text", **style):
        return TextBlock(
            id=block_id,
            style=BlockStyle(x=x, y=y, width=width, height=height, **style),
            properties=TextBlockProperties(content=content),
        )

    return _make


@pytest.fixture
def make_container():
    """Factory for container blocks."""

    def _make(block_id, children, x=0, y=0, width=200, height=100):
        return ContainerBlock(
            id=block_id,
            style=BlockStyle(x=x, y=y, width=width, height=height),
            properties=ContainerBlockProperties(children=children),
        )

    return _make


@pytest.fixture
def payslip_table():
    """A payroll table with bound cells and a label row."""
    return TableBlock(
        id="tbl0001",
        style=BlockStyle(x=20, y=100, width=400, height=150),
        properties=TableBlockProperties(
            rows=[
                TableRow(
                    cells=[
                        TableCell(content="Employee:"),
                        TableCell(content="Full Name", variable="{{employee.fullName}}"),
                    ]
                ),
                TableRow(
                    cells=[
                        TableCell(content="Regular Hours", is_label=True, label_id="regularHours"),
                        TableCell(content="Hours", variable="{{regularHours.hours}}"),
                        TableCell(content="Amount", variable="{{regularHours.amount}}"),
                    ]
                ),
                TableRow(
                    cells=[
                        TableCell(content="Net Pay"),
                        TableCell(content="Net Pay", variable="{{netPay}}"),
                    ]
                ),
            ],
            show_borders=True,
        ),
    )
