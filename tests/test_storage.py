"""Tests for the draft store."""

import pytest
from sqlalchemy import select

from vello.models import (
    BlockStyle,
    Guide,
    GuideOrientation,
    PaperSize,
    TemplateDraft,
    TextBlock,
    TextBlockProperties,
)
from vello.storage import (
    DraftRepository,
    TemplateDraftORM,
    create_db_engine,
    create_session_factory,
    draft_age,
    get_session,
    init_db,
)

HOUR = 3600.0


class Clock:
    """Settable time source."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'drafts.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def clock():
    return Clock()


def make_draft(template_id="tpl-1", name="Payslip", content="Hello"):
    return TemplateDraft(
        template_id=template_id,
        template_name=name,
        blocks=[
            TextBlock(
                id="b1",
                style=BlockStyle(x=10, y=20, width=100, height=40),
                properties=TextBlockProperties(content=content),
            )
        ],
        paper_size=PaperSize.LETTER,
        guides=[Guide(id="g1", orientation=GuideOrientation.VERTICAL, position=120)],
    )


class TestDraftRepository:
    """Tests for draft persistence and expiry."""

    def test_save_and_load(self, factory, clock):
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft())

        with get_session(factory) as session:
            draft = DraftRepository(session, clock=clock).load("tpl-1")

        assert draft.template_name == "Payslip"
        assert draft.saved_at == clock.now
        assert draft.paper_size == PaperSize.LETTER
        assert draft.blocks[0].properties.content == "Hello"
        assert draft.guides[0].position == 120

    def test_payload_stored_in_wire_form(self, factory, clock):
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft())

        with get_session(factory) as session:
            row = session.scalars(select(TemplateDraftORM)).one()
            assert row.payload["paperSize"] == "LETTER"
            assert "templateId" not in row.payload
            assert row.payload["blocks"][0]["style"]["width"] == 100

    def test_save_replaces_existing(self, factory, clock):
        """One draft per template; a later save overwrites it."""
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft(content="First"))
        clock.now += 60
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft(content="Second"))

        with get_session(factory) as session:
            repo = DraftRepository(session, clock=clock)
            draft = repo.load("tpl-1")
            assert len(repo.list_recent()) == 1
        assert draft.blocks[0].properties.content == "Second"
        assert draft.saved_at == clock.now

    def test_load_missing(self, factory):
        with get_session(factory) as session:
            assert DraftRepository(session).load("nope") is None

    def test_expired_draft_deleted_on_load(self, factory, clock):
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft())

        clock.now += 24 * HOUR + 1
        with get_session(factory) as session:
            repo = DraftRepository(session, clock=clock)
            assert repo.load("tpl-1") is None
            assert not repo.has_draft("tpl-1")

        with get_session(factory) as session:
            assert session.get(TemplateDraftORM, "tpl-1") is None

    def test_expiry_window_configurable(self, factory, clock):
        with get_session(factory) as session:
            DraftRepository(session, clock=clock).save(make_draft())

        clock.now += 2 * HOUR
        with get_session(factory) as session:
            assert DraftRepository(session, expiry_hours=1, clock=clock).load("tpl-1") is None

    def test_clear(self, factory, clock):
        with get_session(factory) as session:
            repo = DraftRepository(session, clock=clock)
            repo.save(make_draft())
            assert repo.has_draft("tpl-1")
            assert repo.clear("tpl-1") is True
            assert repo.clear("tpl-1") is False
            assert not repo.has_draft("tpl-1")

    def test_list_recent_newest_first(self, factory, clock):
        """Recent drafts are listed newest first; expired ones are hidden."""
        with get_session(factory) as session:
            repo = DraftRepository(session, clock=clock)
            repo.save(make_draft("old"))
            clock.now += 23 * HOUR
            repo.save(make_draft("mid"))
            clock.now += 2 * HOUR
            repo.save(make_draft("new"))

            assert [d.template_id for d in repo.list_recent()] == ["new", "mid"]
            assert [d.template_id for d in repo.list_recent(limit=1)] == ["new"]

    def test_purge_expired(self, factory, clock):
        with get_session(factory) as session:
            repo = DraftRepository(session, clock=clock)
            repo.save(make_draft("a"))
            repo.save(make_draft("b"))
            clock.now += 30 * HOUR
            repo.save(make_draft("c"))

            assert repo.purge_expired() == 2
            assert repo.purge_expired() == 0
            assert repo.has_draft("c")

    def test_failed_session_rolls_back(self, factory, clock):
        with pytest.raises(RuntimeError):
            with get_session(factory) as session:
                DraftRepository(session, clock=clock).save(make_draft())
                raise RuntimeError("boom")

        with get_session(factory) as session:
            assert DraftRepository(session, clock=clock).load("tpl-1") is None


class TestDraftAge:
    """Tests for the human-readable draft age."""

    @pytest.mark.parametrize(
        "elapsed, expected",
        [
            (0, "just now"),
            (59, "just now"),
            (60, "1 minute ago"),
            (45 * 60, "45 minutes ago"),
            (HOUR, "1 hour ago"),
            (5 * HOUR + 59 * 60, "5 hours ago"),
            (24 * HOUR, "1 day ago"),
            (72 * HOUR, "3 days ago"),
        ],
    )
    def test_age_strings(self, elapsed, expected):
        draft = make_draft().model_copy(update={"saved_at": 1000.0})
        assert draft_age(draft, now=1000.0 + elapsed) == expected

    def test_future_timestamp(self):
        draft = make_draft().model_copy(update={"saved_at": 5000.0})
        assert draft_age(draft, now=1000.0) == "just now"
