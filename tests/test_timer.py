"""
Tests for the cooperative session countdown.
"""
import asyncio

import pytest

from eduprep.client.session import SessionStatus, TestSession
from eduprep.client.timer import SessionTimer
from eduprep.schemas.test import Question


async def instant_sleep(_):
    await asyncio.sleep(0)


def make_session(count=2, seconds_per_question=1):
    session = TestSession(seconds_per_question=seconds_per_question)
    session.start([
        Question(id=f"q{i}", text="?", options=["a", "b"], correct_answer_index=0)
        for i in range(count)
    ])
    return session


class TestSessionTimer:
    """Tests for SessionTimer."""

    @pytest.mark.asyncio
    async def test_countdown_completes_session(self):
        session = make_session(count=3)
        timer = SessionTimer(session, sleep=instant_sleep)

        timer.start()
        await timer.wait()

        assert session.status is SessionStatus.COMPLETED
        assert session.time_remaining_seconds == 0
        assert session.result.total == 0
        assert not timer.running

    @pytest.mark.asyncio
    async def test_cancel_stops_timer(self):
        session = make_session()
        timer = SessionTimer(session, sleep=instant_sleep)

        timer.start()
        session.cancel()
        await timer.wait()

        assert not timer.running
        assert session.status is SessionStatus.NOT_STARTED
        assert session.time_remaining_seconds is None

    @pytest.mark.asyncio
    async def test_completion_by_answers_stops_timer(self):
        session = make_session(count=1, seconds_per_question=60)
        timer = SessionTimer(session, sleep=instant_sleep)

        timer.start()
        await asyncio.sleep(0)
        session.select_answer(0)
        session.advance()
        await timer.wait()

        assert not timer.running
        assert session.result.score == 1
        assert session.time_remaining_seconds > 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent_while_running(self):
        session = make_session(count=1, seconds_per_question=60)
        timer = SessionTimer(session, sleep=instant_sleep)

        first = timer.start()
        second = timer.start()

        assert first is second
        timer.stop()
        await timer.wait()
