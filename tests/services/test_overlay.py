"""Tests for the overlay resolver."""

from datetime import datetime

from diffreview.models import ConversationResponse, DiffSide, ExternalComment, ReviewComment
from diffreview.services.overlay import conversation_at, resolve_overlay, summarize_file


NOW = datetime(2024, 5, 1, 12, 0, 0)
FILE = "src/main.rs"


def _conversation(conv_id="c1", line=42, side="new", file_path=FILE, resolved=False):
    return ConversationResponse(
        id=conv_id,
        attempt_id="a1",
        file_path=file_path,
        line_number=line,
        side=side,
        is_resolved=resolved,
        created_at=NOW,
        updated_at=NOW,
    )


def _review(comment_id="r1", line=42, side="new", file_path=FILE):
    return ReviewComment(id=comment_id, file_path=file_path, line_number=line, side=side, text="nit")


def _external(comment_id="e1", line=42, side="new", file_path=FILE):
    return ExternalComment(
        id=comment_id, file_path=file_path, line_number=line, side=side, body="from github", author="octocat"
    )


class TestResolveOverlay:
    """Tests for resolve_overlay."""

    def test_conversation_beats_everything(self):
        """All three sources on one anchor: the conversation wins."""
        overlay = resolve_overlay(FILE, [_conversation()], [_review()], [_external()])
        slot = overlay.slot(DiffSide.NEW, 42)
        assert slot.kind == "conversation"
        assert slot.data.id == "c1"
        assert len(list(overlay.entries())) == 1

    def test_review_comment_surfaces_without_conversation(self):
        overlay = resolve_overlay(FILE, [], [_review()], [_external()])
        assert overlay.slot("new", 42).kind == "review_comment"

    def test_external_comment_surfaces_last(self):
        overlay = resolve_overlay(FILE, [], [], [_external()])
        assert overlay.slot("new", 42).kind == "external_comment"

    def test_source_order_does_not_matter_across_tiers(self):
        """Lower tiers fill gaps only, whatever line they sit on."""
        overlay = resolve_overlay(
            FILE,
            [_conversation(line=1)],
            [_review(line=1), _review("r2", line=2)],
            [_external(line=1), _external("e2", line=2), _external("e3", line=3)],
        )
        assert overlay.slot("new", 1).kind == "conversation"
        assert overlay.slot("new", 2).data.id == "r2"
        assert overlay.slot("new", 3).data.id == "e3"

    def test_sides_are_independent(self):
        """The same line number on old and new are different slots."""
        overlay = resolve_overlay(FILE, [_conversation(side="old")], [_review(side="new")], [])
        assert overlay.slot("old", 42).kind == "conversation"
        assert overlay.slot("new", 42).kind == "review_comment"

    def test_first_in_tier_wins(self):
        overlay = resolve_overlay(FILE, [], [_review("r1"), _review("r2")], [])
        assert overlay.slot("new", 42).data.id == "r1"

    def test_other_files_ignored(self):
        overlay = resolve_overlay(
            FILE, [_conversation(file_path="other.rs")], [_review(file_path="other.rs")], []
        )
        assert list(overlay.entries()) == []

    def test_resolved_conversation_still_claims_slot(self):
        overlay = resolve_overlay(FILE, [_conversation(resolved=True)], [_review()], [])
        assert overlay.slot("new", 42).kind == "conversation"

    def test_entries_order(self):
        """Old side first, ascending line numbers."""
        overlay = resolve_overlay(
            FILE, [], [_review("r1", line=9), _review("r2", line=3), _review("r3", line=5, side="old")], []
        )
        assert [(side.value, line) for side, line, _ in overlay.entries()] == [("old", 5), ("new", 3), ("new", 9)]

    def test_serializes_tagged_entries(self):
        overlay = resolve_overlay(FILE, [_conversation()], [], [_external(line=7)])
        dumped = overlay.model_dump(mode="json")
        assert sorted(entry["kind"] for entry in dumped["new"].values()) == ["conversation", "external_comment"]
        assert dumped["old"] == {}

    def test_conversation_at(self):
        overlay = resolve_overlay(FILE, [_conversation()], [_review(line=5)], [])
        assert conversation_at(overlay, "new", 42).id == "c1"
        assert conversation_at(overlay, "new", 5) is None
        assert conversation_at(overlay, "old", 42) is None


class TestSummarizeFile:
    """Tests for summarize_file."""

    def test_counts(self):
        summary = summarize_file(
            FILE,
            [_conversation("c1", line=1), _conversation("c2", line=2, resolved=True),
             _conversation("c3", file_path="x.rs")],
            [_review()],
            [_external(), _external("e2", line=3)],
        )
        assert summary.conversations == 2
        assert summary.unresolved_conversations == 1
        assert summary.review_comments == 1
        assert summary.external_comments == 2
        assert summary.total == 4

    def test_empty(self):
        assert summarize_file(FILE).total == 0
