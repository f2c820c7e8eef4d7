from datetime import date

import pytest

from pigger_timeline.data.loader import parse_feed

FEED_TEXT = """Person,Task,Start,End,Type,Status,Progress,Color,Note,URL
RD,Build API,2024-01-10,2024-01-15,Task,進行中,50,,,https://example.com/api
UI,Design review,2024-01-12,2024-01-12,Milestone,重要會議,0,,see https://y,

PM,Plan sprint,2024-01-11,2024-01-20,Task,未開始,0,#ABC,https://notes.example.com,
RD,Write docs,2024-01-16,2024-01-18,Task,進行中,10,blue,plain note,ftp://files.example.com
"""


@pytest.fixture
def today():
    return date(2024, 3, 1)


@pytest.fixture
def feed_text():
    return FEED_TEXT


@pytest.fixture
def rows():
    return parse_feed(FEED_TEXT)
