"""
Tests for DailyQAResolver: question lookup, answer partition and upsert
"""
import pytest

from daily_question.core.errors import LookupFailure, ValidationFailure, WriteFailure
from daily_question.services.qa_resolver import (
    MSG_EMPTY_ANSWER,
    MSG_NO_QUESTION,
    MSG_NOTHING_LOADED,
    DailyQAResolver,
    ParticipantPair,
    ResolutionStatus,
    parse_today,
    today_for,
)
from daily_question.services.stores import AnswerRecord

from conftest import QUESTION_DAY, InMemoryAnswerStore, InMemoryQuestionStore


@pytest.fixture
def resolver(question_store, answer_store) -> DailyQAResolver:
    return DailyQAResolver(question_store, answer_store)


@pytest.mark.asyncio
async def test_scenario_partner_sees_first_kiss(resolver, question, answer_store):
    """A answers, B resolves the same day and sees A's answer as the partner's"""
    saved = await resolver.submit_answer("A", question, "Der erste Kuss")
    assert (saved.question_id, saved.user_id, saved.answer_text) == ("q1", "A", "Der erste Kuss")

    resolution = await resolver.resolve_today("B", "2024-12-05")

    assert resolution.status == ResolutionStatus.RESOLVED
    assert resolution.question == question
    assert resolution.mine is None
    assert resolution.partner_other.answer_text == "Der erste Kuss"
    assert resolution.draft_text == ""


@pytest.mark.asyncio
async def test_partition_is_mirrored_between_participants(resolver, question):
    await resolver.submit_answer("A", question, "Antwort von A")
    await resolver.submit_answer("B", question, "Antwort von B")

    for_a = await resolver.resolve_today("A", QUESTION_DAY)
    for_b = await resolver.resolve_today("B", QUESTION_DAY)

    assert for_a.mine.user_id == "A"
    assert for_a.partner_other.user_id == "B"
    assert for_b.mine.user_id == "B"
    assert for_b.partner_other.user_id == "A"
    assert for_a.draft_text == "Antwort von A"


@pytest.mark.asyncio
async def test_submit_twice_keeps_single_row(resolver, question, answer_store):
    first = await resolver.submit_answer("A", question, "x")
    second = await resolver.submit_answer("A", question, "x")

    rows = [a for a in answer_store.rows if (a.question_id, a.user_id) == ("q1", "A")]
    assert len(rows) == 1
    assert rows[0].answer_text == "x"
    assert first.id == second.id


@pytest.mark.asyncio
async def test_resubmit_overwrites_body(resolver, question):
    await resolver.submit_answer("A", question, "alt")
    await resolver.submit_answer("A", question, "neu")

    resolution = await resolver.resolve_today("A", QUESTION_DAY)
    assert resolution.mine.answer_text == "neu"


@pytest.mark.asyncio
async def test_round_trip_submit_then_resolve(resolver, question):
    await resolver.submit_answer("A", question, "Am Meer")
    resolution = await resolver.resolve_today("A", QUESTION_DAY)
    assert resolution.mine.answer_text == "Am Meer"


@pytest.mark.asyncio
async def test_submitted_text_is_trimmed(resolver, question):
    saved = await resolver.submit_answer("A", question, "  Am Meer \n")
    assert saved.answer_text == "Am Meer"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
async def test_blank_answer_is_rejected_without_write(resolver, question, answer_store, text):
    with pytest.raises(ValidationFailure) as exc:
        await resolver.submit_answer("A", question, text)
    assert exc.value.message == MSG_EMPTY_ANSWER
    assert answer_store.writes == 0


@pytest.mark.asyncio
async def test_submit_without_question_is_rejected(resolver, answer_store):
    with pytest.raises(ValidationFailure) as exc:
        await resolver.submit_answer("A", None, "Text")
    assert exc.value.message == MSG_NOTHING_LOADED
    assert answer_store.writes == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("identity", ["A", "B", "someone-else"])
async def test_no_question_day(answer_store, identity):
    resolver = DailyQAResolver(InMemoryQuestionStore([]), answer_store)

    resolution = await resolver.resolve_today(identity, "2024-12-06")

    assert resolution.status == ResolutionStatus.NO_QUESTION
    assert resolution.question is None
    assert resolution.mine is None
    assert resolution.partner_other is None
    assert resolution.message == MSG_NO_QUESTION
    assert answer_store.reads == 0


@pytest.mark.asyncio
async def test_question_lookup_failure(answer_store):
    resolver = DailyQAResolver(InMemoryQuestionStore(fail=True), answer_store)

    with pytest.raises(LookupFailure) as exc:
        await resolver.resolve_today("A", QUESTION_DAY)

    assert exc.value.message == "Fehler beim Laden der Frage: connection refused"
    assert answer_store.reads == 0


@pytest.mark.asyncio
async def test_answer_lookup_failure(resolver, answer_store):
    answer_store.fail_reads = True

    with pytest.raises(LookupFailure) as exc:
        await resolver.resolve_today("A", QUESTION_DAY)

    assert exc.value.message == "Fehler beim Laden der Antworten: timeout"


@pytest.mark.asyncio
async def test_write_failure_is_reported_once(resolver, question, answer_store):
    answer_store.fail_writes = True

    with pytest.raises(WriteFailure) as exc:
        await resolver.submit_answer("A", question, "Text")

    assert exc.value.message == "Fehler beim Speichern: duplicate key"
    # 自動リトライはしない
    assert answer_store.writes == 1


@pytest.mark.asyncio
async def test_malformed_date_is_validation_failure(resolver, question_store):
    with pytest.raises(ValidationFailure):
        await resolver.resolve_today("A", "05.12.2024")
    assert question_store.calls == 0


def test_extra_partner_answers_first_in_order_wins():
    answers = [
        AnswerRecord("1", "q1", "B", "erste"),
        AnswerRecord("2", "q1", "A", "meine"),
        AnswerRecord("3", "q1", "C", "zweite"),
    ]

    pair = ParticipantPair.from_answers("A", answers)

    assert pair.mine.id == "2"
    assert pair.partner_other.id == "1"


def test_with_mine_leaves_partner_untouched():
    partner = AnswerRecord("1", "q1", "B", "hallo")
    pair = ParticipantPair(mine=None, partner_other=partner)

    updated = pair.with_mine(AnswerRecord("2", "q1", "A", "neu"))

    assert updated.mine.answer_text == "neu"
    assert updated.partner_other is partner


def test_parse_today_accepts_date_and_iso_string():
    assert parse_today(QUESTION_DAY) == QUESTION_DAY
    assert parse_today("2024-12-05") == QUESTION_DAY


def test_today_for_uses_configured_zone():
    from datetime import datetime, timezone

    # UTC 23:30 は東京では翌日
    now = datetime(2024, 12, 5, 23, 30, tzinfo=timezone.utc)
    assert today_for("UTC", now) == QUESTION_DAY
    assert today_for("Asia/Tokyo", now).isoformat() == "2024-12-06"


@pytest.mark.asyncio
async def test_resolve_reads_question_then_answers(question):
    order = []

    class RecordingQuestions(InMemoryQuestionStore):
        async def find_by_date(self, question_date):
            order.append("question")
            return await super().find_by_date(question_date)

    class RecordingAnswers(InMemoryAnswerStore):
        async def find_by_question(self, question_id):
            order.append("answers")
            return await super().find_by_question(question_id)

    resolver = DailyQAResolver(RecordingQuestions([question]), RecordingAnswers())
    await resolver.resolve_today("A", QUESTION_DAY)

    assert order == ["question", "answers"]
